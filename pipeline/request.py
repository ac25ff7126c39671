"""Request builder: wire-encoded write request plus Basic authentication."""
from __future__ import annotations

import base64
import dataclasses
from dataclasses import dataclass
from typing import Union

from multidict import CIMultiDict
from yarl import URL

from .errors import AuthHeaderError
from .metrics import WriteRequest
from .wire import HttpRequest, encode


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = dataclasses.field(repr=False)


def basic_auth_header(credentials: Credentials) -> str:
    """Return ``Basic <base64(username:password)>`` with UTF-8 credentials."""
    raw = f"{credentials.username}:{credentials.password}"
    try:
        token = base64.b64encode(raw.encode("utf-8")).decode("ascii")
    except UnicodeEncodeError as exc:
        raise AuthHeaderError("remote write credentials are not valid UTF-8") from exc
    return f"Basic {token}"


def build(
    write_request: WriteRequest,
    endpoint_url: Union[str, URL],
    user_agent: str,
    credentials: Credentials,
) -> HttpRequest:
    """Encode *write_request* for *endpoint_url* and attach the Authorization header.

    ``EncodingError`` from the wire encoder propagates unchanged.
    """
    request = encode(write_request, endpoint_url, user_agent)
    headers = CIMultiDict(request.headers)
    headers["Authorization"] = basic_auth_header(credentials)
    return dataclasses.replace(request, headers=headers)
