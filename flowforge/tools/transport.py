"""
HTTP transport for REQUEST nodes and the proxy relay.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass, field
import json
import logging

import httpx

from flowforge.core import config

logger = logging.getLogger(__name__)


@dataclass
class HttpResponse:
    status_code: int
    reason: str
    text: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class TransportError(Exception):
    """Network-level failure (connection refused, timeout, bad URL...)."""


class HttpTransport:
    """
    Sends requests either straight to the target URL or to a relay endpoint.

    A client can be injected (tests pass one built on httpx.MockTransport);
    otherwise a short-lived AsyncClient is opened per request.
    """

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.proxy_url = config.PROXY_URL if proxy_url is None else proxy_url
        self.timeout = config.HTTP_TIMEOUT if timeout is None else timeout
        self.client = client

    async def send(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        """Perform the request and return status, reason and body text."""
        logger.info(f"{method} {url}")
        try:
            if self.client is not None:
                response = await self.client.request(method, url, headers=headers, content=body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.request(method, url, headers=headers, content=body)
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__) from e

        return HttpResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            text=response.text,
            headers=dict(response.headers),
        )

    async def send_via_proxy(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        """Post a {url, method, headers, body} envelope to the relay endpoint."""
        if not self.proxy_url:
            raise TransportError("Proxy URL is not configured")
        envelope: Dict[str, Any] = {
            "url": url,
            "method": method,
            "headers": headers or {},
            "body": body,
        }
        return await self.send(
            "POST",
            self.proxy_url,
            headers={"Content-Type": "application/json"},
            body=json.dumps(envelope),
        )
