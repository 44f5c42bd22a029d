"""Read-only JSON over HTTPS, used for NPM registry documents.

`RealHttpClient` talks to the network; `MockHttpClient` serves canned
documents keyed by URL so registry logic can be tested offline. Both
return `Result` values and never raise for transport failures.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from trains.core.result import Err, Ok, Result
from trains.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]

type JsonObject = dict[str, Any]


@dataclass(frozen=True, slots=True)
class HttpError:
    url: str
    # 0 when no response was received.
    status: int
    message: str

    @classmethod
    def unreachable(cls, url: str, reason: object) -> HttpError:
        return cls(url=url, status=0, message=str(reason))

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    def get_json(self, url: str) -> Result[JsonObject, HttpError]:
        """GET `url` and decode the body, which must be a JSON object."""
        ...


class RealHttpClient:
    """urllib client verifying TLS against the system certificates. No retries."""

    def __init__(self, timeout: float = 30.0, user_agent: str = "release-trains/0.1.0") -> None:
        self.timeout = timeout
        self._headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._ssl_context = ssl.create_default_context()

    def get_json(self, url: str) -> Result[JsonObject, HttpError]:
        request = urllib.request.Request(url, headers=self._headers)
        try:
            with urllib.request.urlopen(
                request, timeout=self.timeout, context=self._ssl_context
            ) as response:
                body: bytes = response.read()
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError.unreachable(url, e.reason))
        except TimeoutError:
            return Err(HttpError.unreachable(url, "Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError.unreachable(url, e))

        try:
            document = as_str_dict(json.loads(body))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError.unreachable(url, f"Invalid JSON response: {e}"))
        if document is None:
            return Err(HttpError.unreachable(url, "Expected a JSON object"))
        return Ok(cast(JsonObject, document))


class MockHttpClient:
    """Serves documents registered with `set_json`; other URLs answer 404.

    Requested URLs are recorded in `requested`.
    """

    def __init__(self) -> None:
        self._documents: dict[str, JsonObject | HttpError] = {}
        self.requested: list[str] = []

    def set_json(self, url: str, response: JsonObject | HttpError) -> None:
        self._documents[url] = response

    def get_json(self, url: str) -> Result[JsonObject, HttpError]:
        self.requested.append(url)
        match self._documents.get(url):
            case None:
                return Err(HttpError(url=url, status=404, message="Not Found"))
            case HttpError() as error:
                return Err(error)
            case document:
                return Ok(document)
