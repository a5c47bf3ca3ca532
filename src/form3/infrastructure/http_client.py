"""Single-attempt HTTP runners (requests for blocking code, httpx for asyncio).

A runner performs exactly one physical round trip through an injected
transport. Retrying and status interpretation live in
:mod:`form3.infrastructure.retry`.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx
import requests

from form3.domain.config.client import DEFAULT_USER_AGENT
from form3.domain.errors import MalformedRequest, TransportFailure
from form3.domain.models.request import RequestSpec

logger = logging.getLogger(__name__)


def build_headers(spec: RequestSpec, user_agent: str) -> Dict[str, str]:
    """Headers for one attempt: caller headers plus content type and identification."""
    headers = dict(spec.headers)
    if spec.body is not None:
        headers.setdefault("Content-Type", "application/json")
    headers["User-Agent"] = user_agent
    return headers


class AttemptRunner:
    """Performs one request through a ``requests.Session`` compatible transport"""

    def __init__(self, session: requests.Session, user_agent: str = DEFAULT_USER_AGENT):
        self.session = session
        self.user_agent = user_agent

    def run(self, spec: RequestSpec, timeout: Optional[float] = None) -> requests.Response:
        """Submit the request described by ``spec``.

        Args:
            spec: Request to perform
            timeout: Seconds to wait for the transport (None = no limit)

        Returns:
            The response, whatever its status code

        Raises:
            MalformedRequest: If the target cannot be used to build a request
            TransportFailure: If no response could be obtained
        """
        headers = build_headers(spec, self.user_agent)
        logger.debug(f"HTTP {spec.method} {spec.url}")
        try:
            response = self.session.request(
                spec.method, spec.url, data=spec.body, headers=headers, timeout=timeout
            )
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as e:
            raise MalformedRequest(f"invalid request target {spec.url!r}: {e}") from e
        except requests.exceptions.Timeout as e:
            raise TransportFailure(f"request timed out: {e}", timed_out=True) from e
        except requests.exceptions.RequestException as e:
            raise TransportFailure(f"request could not be performed: {e}") from e

        logger.debug(f"HTTP {spec.method} {spec.url} -> {response.status_code}")
        return response


class AsyncAttemptRunner:
    """Performs one request through an ``httpx.AsyncClient`` compatible transport"""

    def __init__(self, client: httpx.AsyncClient, user_agent: str = DEFAULT_USER_AGENT):
        self.client = client
        self.user_agent = user_agent

    async def run(self, spec: RequestSpec, timeout: Optional[float] = None) -> httpx.Response:
        headers = build_headers(spec, self.user_agent)
        kwargs = {"content": spec.body, "headers": headers}
        # httpx treats timeout=None as "no timeout", omit it to keep the client default
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.debug(f"HTTP {spec.method} {spec.url}")
        try:
            response = await self.client.request(spec.method, spec.url, **kwargs)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise MalformedRequest(f"invalid request target {spec.url!r}: {e}") from e
        except httpx.TimeoutException as e:
            raise TransportFailure(f"request timed out: {e}", timed_out=True) from e
        except httpx.RequestError as e:
            raise TransportFailure(f"request could not be performed: {e}") from e

        logger.debug(f"HTTP {spec.method} {spec.url} -> {response.status_code}")
        return response
