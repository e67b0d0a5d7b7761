from __future__ import annotations

import base64
import http.client
import json
import socket
import urllib.error
import urllib.request
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlencode

from tools.graphite_check.errors import FetchError
from tools.graphite_check.series import Series, SeriesDecodeError, decode_series
from tools.graphite_check.settings import DebugFn, no_debug


class GraphiteClient:
    """Queries the Graphite render API with a single timeout-bounded POST per call."""

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout_seconds: float = 20.0,
        debug: DebugFn = no_debug,
    ) -> None:
        if base_url.endswith("/"):
            self._base_url = base_url[:-1]
        else:
            self._base_url = base_url
        self._username = username
        self._password = password
        self._timeout_seconds = timeout_seconds
        self._debug = debug

    @property
    def render_url(self) -> str:
        return f"{self._base_url}/render/"

    def _authorization(self) -> Optional[str]:
        if not self._username:
            return None
        credentials = f"{self._username}:{self._password or ''}".encode("utf-8")
        return "Basic " + base64.b64encode(credentials).decode("ascii")

    def render(self, target: str, period: str) -> List[Series]:
        form = {"target": target, "from": f"-{period}", "format": "json"}
        self._debug(f"POST {self.render_url} {form}")
        request = urllib.request.Request(
            self.render_url,
            data=urlencode(form).encode("utf-8"),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            method="POST",
        )
        authorization = self._authorization()
        if authorization:
            request.add_header("Authorization", authorization)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout_seconds) as response:
                body = response.read()
        except urllib.error.HTTPError as exc:
            raise FetchError(f"{self.render_url} returned HTTP {exc.code}: {exc.reason}") from exc
        except urllib.error.URLError as exc:
            raise FetchError(f"failed to query {self.render_url}: {exc.reason}") from exc
        except (socket.timeout, TimeoutError) as exc:
            raise FetchError(f"timed out querying {self.render_url} after {self._timeout_seconds}s") from exc
        except http.client.HTTPException as exc:
            raise FetchError(f"malformed response from {self.render_url}: {exc!r}") from exc
        except OSError as exc:
            raise FetchError(f"failed to query {self.render_url}: {exc}") from exc

        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FetchError(f"invalid JSON from {self.render_url}: {exc}") from exc
        try:
            series = decode_series(payload)
        except SeriesDecodeError as exc:
            raise FetchError(f"unexpected response from {self.render_url}: {exc}") from exc
        self._debug(f"{target}: {len(series)} series")
        return series


class SeriesCache:
    """Per-run memo so each target is fetched at most once."""

    def __init__(self, client: GraphiteClient, period: str) -> None:
        self._client = client
        self._period = period
        self._entries: Dict[Tuple[str, str], List[Series]] = {}

    def get(self, target: str) -> List[Series]:
        key = (target, self._period)
        if key not in self._entries:
            self._entries[key] = self._client.render(target, self._period)
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
