"""Byte transport for the resource loader.

Remote resources go through an injected `httpx.AsyncClient`; local paths and
``file://`` URLs are read from disk in a worker thread. Every failure is
raised as `ResourceFailedError` carrying the raw failure data (the HTTP
response or the underlying exception).
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import quote, urlsplit
from urllib.request import url2pathname

import httpx

from tessera.config import DEFAULT_HTTP_TIMEOUT
from tessera.domain.errors import ResourceFailedError

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")


def is_remote(url: str) -> bool:
    """Return True if `url` is fetched over HTTP(S)."""
    return urlsplit(url).scheme.lower() in REMOTE_SCHEMES


def local_path(url: str) -> Path:
    """Return the filesystem path of a local path or ``file://`` URL."""
    parts = urlsplit(url)
    if parts.scheme.lower() == "file":
        return Path(url2pathname(parts.path))
    return Path(url)


def _query_pairs(data: Any, prefix: str | None = None) -> list[str]:
    pairs: list[str] = []
    items = data.items() if isinstance(data, Mapping) else enumerate(data)
    for name, value in items:
        key = f"{prefix}[{quote(str(name), safe='')}]" if prefix else quote(str(name), safe="")
        if isinstance(value, (Mapping, list, tuple)):
            pairs.extend(_query_pairs(value, key))
        else:
            pairs.append(f"{key}={quote(_scalar(value), safe='')}")
    return pairs


def _scalar(value: Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    return str(value)


def build_url(url: str, params: Mapping[str, Any] | None) -> str:
    """Append request parameters to a URL as a query string.

    Nested mappings and lists use bracket notation (``a[b]=1``). A mapping
    under the ``json`` parameter is sent as one JSON-encoded value.

    Example:
        >>> build_url("https://x.test/api", {"a": 1, "b": {"c": "d e"}})
        'https://x.test/api?a=1&b[c]=d%20e'
    """
    if not params:
        return url
    params = dict(params)
    if isinstance(params.get("json"), Mapping):
        params["json"] = json.dumps(params["json"], separators=(",", ":"))
    separator = "&" if "?" in url else "?"
    return url + separator + "&".join(_query_pairs(params))


class HttpTransport:
    """Fetches resource bytes over HTTP(S) or from the local filesystem.

    Args:
        client: The HTTP client to use. When omitted, the transport creates
            its own client (and closes it in `aclose`).
        timeout: Timeout in seconds for a client created by the transport.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._owns_client = client is None
        self._closed = False
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def request(  # pylint: disable=too-many-arguments
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        content: str | bytes | None = None,
        headers: Mapping[str, str] | None = None,
        no_cache: bool = False,
    ) -> httpx.Response:
        """Perform an HTTP request and return the successful response.

        Raises:
            ResourceFailedError: On transport errors (with the exception as
                data) and on non-2xx responses (with the response as data).
        """
        headers = dict(headers or {})
        if no_cache:
            headers.setdefault("Cache-Control", "no-cache")
        logger.debug("%s %s", method.upper(), url)
        try:
            response = await self._client.request(
                method.upper(), url, json=json_body, content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            raise ResourceFailedError(url, exc) from exc
        if not response.is_success:
            logger.debug("%s %s -> %s", method.upper(), url, response.status_code)
            raise ResourceFailedError(url, response)
        return response

    async def read_local(self, url: str) -> bytes:
        """Read a local path or ``file://`` URL.

        Raises:
            ResourceFailedError: If the file cannot be read (with the OS error as data).
        """
        path = local_path(url)
        logger.debug("Reading %s", path)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise ResourceFailedError(url, exc) from exc

    async def get_bytes(self, url: str, *, no_cache: bool = False) -> bytes:
        """GET the bytes of a remote or local resource."""
        if not is_remote(url):
            return await self.read_local(url)
        return (await self.request("get", url, no_cache=no_cache)).content

    async def get_text(self, url: str, *, no_cache: bool = False) -> str:
        """GET the text of a remote or local resource."""
        if not is_remote(url):
            return (await self.read_local(url)).decode("utf-8")
        return (await self.request("get", url, no_cache=no_cache)).text

    async def aclose(self) -> None:
        """Close the HTTP client if the transport created it."""
        if self._owns_client and not self._closed:
            self._closed = True
            await self._client.aclose()
