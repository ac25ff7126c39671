"""Exceptions raised by speedwatch.

Every failure inside a cycle surfaces as a :class:`SpeedwatchError` subclass so
the scheduler can apply its error policy to exactly these and nothing else.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .delivery import DeliveryOutcome


class SpeedwatchError(Exception):
    """Base class for all cycle failures."""


class ConfigError(SpeedwatchError):
    """A config file named on the command line could not be used."""


class HostResolutionError(SpeedwatchError):
    """The host name of this machine could not be determined."""


class ClockError(SpeedwatchError):
    """The system clock could not be read as Unix epoch time."""


class MeasurementError(SpeedwatchError):
    """The measurement source could not produce a result."""


class EncodingError(SpeedwatchError):
    """The write request could not be turned into an HTTP request."""


class AuthHeaderError(SpeedwatchError):
    """The credentials could not be encoded into an Authorization header."""


class TransportError(SpeedwatchError):
    """The HTTP request could not be completed."""


class DeliveryStatusError(TransportError):
    """The endpoint answered with a non-2xx status (strict mode only)."""

    def __init__(self, outcome: DeliveryOutcome) -> None:
        super().__init__(f"remote write rejected with HTTP {outcome.status} {outcome.reason}")
        self.outcome = outcome
