"""Tests for probe.latency against a scripted WebSocket peer."""

import asyncio
import math
import unittest
from unittest import mock

import websockets.exceptions

from probe.latency import LatencyProbe, ServerLatency
from probe.servers import Server

GREETING = ["HELLO 2.11 (2.11.0) 2023-05-10.1436.4cbc4bd", "YOURIP 203.0.113.7", "CAPABILITIES SERVER_HOST_AUTH UPLOAD_STATS"]


class FakeSocket:
    """Answers each PING with the next scripted reply.

    ``None`` means no answer; ``"LATE <reply>"`` delivers the reply only after
    the first read waiting for it has timed out.
    """

    def __init__(self, replies, greeting=GREETING):
        self.inbox = list(greeting)
        self.replies = list(replies)
        self.sent = []
        self.late = []
        self.overdue = []

    async def send(self, message):
        self.sent.append(message)
        reply = self.replies.pop(0) if self.replies else None
        if reply is None:
            return
        if reply.startswith("LATE "):
            self.late.append(reply[len("LATE "):])
        else:
            self.inbox.append(reply)

    async def recv(self):
        if self.overdue:
            self.inbox.insert(0, self.overdue.pop(0))
        if self.inbox:
            return self.inbox.pop(0)
        if self.late:
            self.overdue.append(self.late.pop(0))
        await asyncio.sleep(3600)


def _server(sid=1, host="a.example"):
    return Server(id=sid, host=host)


class TestServerLatency(unittest.TestCase):
    def test_best_and_mean(self):
        r = ServerLatency(server=_server(), samples=[10.0, 20.0, 30.0])
        self.assertTrue(r.ok)
        self.assertAlmostEqual(r.best_ms, 10.0)
        self.assertAlmostEqual(r.mean_ms, 20.0)

    def test_empty(self):
        r = ServerLatency(server=_server())
        self.assertFalse(r.ok)
        self.assertEqual(r.best_ms, math.inf)
        self.assertEqual(r.mean_ms, 0.0)


class TestLatencyProbe(unittest.IsolatedAsyncioTestCase):
    def _connect(self, sock):
        patcher = mock.patch("probe.latency.websockets.connect")
        connect = patcher.start()
        self.addCleanup(patcher.stop)
        connect.return_value.__aenter__.return_value = sock
        return connect

    def _probe(self, count=3):
        return LatencyProbe(count=count, reply_timeout=0.05, greeting_timeout=0.2)

    async def test_collects_requested_round_trips(self):
        sock = FakeSocket(["PONG 1"] * 5)
        connect = self._connect(sock)

        result = await self._probe(count=3).probe(_server())

        self.assertTrue(result.ok)
        self.assertEqual(len(result.samples), 3)
        self.assertTrue(all(s >= 0 for s in result.samples))
        self.assertEqual(len(sock.sent), 3)
        self.assertTrue(all(m.startswith("PING ") for m in sock.sent))
        self.assertEqual(connect.call_args.args[0], "wss://a.example:8080/ws")

    async def test_single_lost_reply_tolerated(self):
        sock = FakeSocket(["PONG 1", None, "PONG 2", "PONG 3"])
        self._connect(sock)
        result = await self._probe(count=3).probe(_server())
        self.assertEqual(len(result.samples), 3)
        self.assertEqual(len(sock.sent), 4)

    async def test_late_reply_not_taken_for_next_round_trip(self):
        sock = FakeSocket(["PONG 1", "LATE PONG 2", "PONG 3", "PONG 4"])
        self._connect(sock)

        result = await self._probe(count=3).probe(_server())

        self.assertEqual(len(result.samples), 3)
        self.assertEqual(len(sock.sent), 4)
        # every reply was consumed by the PING it answers, none left queued
        self.assertEqual(sock.inbox, [])
        self.assertEqual(sock.overdue, [])

    async def test_two_lost_replies_stop(self):
        sock = FakeSocket(["PONG 1", None, None, "PONG 2"])
        self._connect(sock)
        result = await self._probe(count=3).probe(_server())
        self.assertEqual(len(result.samples), 1)
        self.assertTrue(result.ok)

    async def test_unexpected_reply_is_a_miss(self):
        sock = FakeSocket(["ERROR busy", "ERROR busy"])
        self._connect(sock)
        result = await self._probe(count=3).probe(_server())
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "no PONG received")

    async def test_short_greeting(self):
        sock = FakeSocket(["PONG 1"], greeting=["HELLO"])
        self._connect(sock)
        result = await self._probe(count=1).probe(_server())
        self.assertEqual(len(result.samples), 1)

    async def test_connection_refused(self):
        patcher = mock.patch("probe.latency.websockets.connect", side_effect=OSError("refused"))
        patcher.start()
        self.addCleanup(patcher.stop)
        result = await self._probe().probe(_server())
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "refused")

    async def test_connection_closed(self):
        sock = FakeSocket([])
        sock.send = mock.AsyncMock(side_effect=websockets.exceptions.ConnectionClosedError(None, None))
        self._connect(sock)
        result = await self._probe().probe(_server())
        self.assertFalse(result.ok)
        self.assertTrue(result.error)

    async def test_rank_orders_by_best_round_trip(self):
        slow = ServerLatency(server=_server(1), samples=[40.0])
        fast = ServerLatency(server=_server(2), samples=[30.0, 5.0])
        down = ServerLatency(server=_server(3), error="refused")
        probe = self._probe()
        probe.probe = mock.AsyncMock(side_effect=[down, slow, fast])

        ranked = await probe.rank([_server(3), _server(1), _server(2)])

        self.assertEqual([r.server.id for r in ranked], [2, 1, 3])


if __name__ == "__main__":
    unittest.main()
