"""API client: wires the transport, retry policy and resource services together"""

from __future__ import annotations

import logging
import random
from typing import Any, Optional

import requests

from form3.application.accounts import AccountService
from form3.domain.config.client import DEFAULT_BASE_URL, DEFAULT_USER_AGENT, ClientConfig
from form3.domain.config.retry import RetryConfig
from form3.domain.models.request import RequestSpec
from form3.infrastructure.http_client import AttemptRunner
from form3.infrastructure.retry import RetryObserver, RetryScheduler, log_retry

logger = logging.getLogger(__name__)


class Client:
    """Client used to access API resources

    Each resource service (e.g. ``client.accounts``) performs its requests
    through :meth:`perform_request`, which retries failed attempts according
    to the retry policy.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        retry_config: Optional[RetryConfig] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        debug: bool = False,
        rng: Any = None,
        observer: Optional[RetryObserver] = None,
    ):
        """Initialize client

        Args:
            base_url: API base URL to perform requests against
            session: Transport used to perform requests (default: new requests.Session)
            retry_config: Retry policy (default: 3 retries, 1s initial wait, 60s timeout)
            user_agent: Allows the server to identify the client
            debug: Report every retry decision through the log
            rng: Random source used to generate jitter between retries
            observer: Called before every retry sleep (default: log when debug is on)
        """
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.retry_config = retry_config or RetryConfig()
        self.user_agent = user_agent
        self.debug = debug

        if observer is None and debug:
            observer = log_retry

        self.runner = AttemptRunner(self.session, user_agent=user_agent)
        self.scheduler = RetryScheduler(
            self.runner,
            policy=self.retry_config,
            observer=observer,
            rng=rng if rng is not None else random.Random(),
        )
        self.accounts = AccountService(self)

        logger.debug(f"API client initialized for {self.base_url}")

    @classmethod
    def from_config(
        cls,
        client_config: ClientConfig,
        retry_config: RetryConfig,
        session: Optional[requests.Session] = None,
    ) -> "Client":
        """Create client from validated configuration models"""
        return cls(
            base_url=client_config.base_url,
            session=session,
            retry_config=retry_config,
            user_agent=client_config.user_agent,
            debug=client_config.debug,
        )

    def url(self, path: str) -> str:
        """Absolute URL for a resource path"""
        return f"{self.base_url}{path}"

    def perform_request(self, method: str, url: str, body: Optional[bytes] = None) -> Any:
        """Perform an http request to the API, retrying when possible.

        The time until the next attempt is doubled with some jitter added, but
        it stays within the retry policy timeout.

        Raises:
            Form3Error: See :meth:`RetryScheduler.execute`
        """
        spec = RequestSpec(method=method, url=url, body=body)
        return self.scheduler.execute(spec)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
