"""Accounts resource: create, fetch and delete organisation accounts"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional
from urllib.parse import quote

from form3.domain.errors import FatalOperationFailure, Form3Error, OperationError, RetryBudgetExhausted
from form3.domain.models.account import Account

if TYPE_CHECKING:
    from form3.application.client import Client

logger = logging.getLogger(__name__)

RESOURCE_PATH = "/v1/organisation/accounts"


def read_body(response: Any) -> bytes:
    """Read the full response body"""
    return response.content


class AccountService:
    """Account operations performed through a :class:`Client`

    Marshalling, unmarshalling and body reading are injectable so every
    failure path can be exercised.
    """

    def __init__(
        self,
        client: "Client",
        json_marshal: Callable[[Any], Any] = json.dumps,
        json_unmarshal: Callable[[Any], Any] = json.loads,
        read_body: Callable[[Any], bytes] = read_body,
    ):
        self.client = client
        self.json_marshal = json_marshal
        self.json_unmarshal = json_unmarshal
        self.read_body = read_body

    def create(self, account: Account) -> Account:
        """Create an account

        Args:
            account: Account to create

        Returns:
            The account as stored by the API

        Raises:
            OperationError: If the account could not be created
        """
        try:
            body = self.json_marshal(account.to_dict())
        except Exception as e:
            raise OperationError(f"there was a problem marshalling the request body: {e}") from e
        if isinstance(body, str):
            body = body.encode("utf-8")

        account_id = account.data.id if account.data else None
        logger.info(f"Creating account {account_id}")
        response = self._send("POST", self.client.url(RESOURCE_PATH), body, expected_status=201)
        return self._decode(response)

    def fetch(self, account_id: str) -> Account:
        """Fetch an account by id

        Raises:
            OperationError: If the account does not exist or could not be fetched
        """
        logger.info(f"Fetching account {account_id}")
        url = self.client.url(f"{RESOURCE_PATH}/{quote(account_id, safe='')}")
        response = self._send("GET", url, None, expected_status=200)
        return self._decode(response)

    def delete(self, account_id: str, version: int) -> None:
        """Delete a specific version of an account

        Raises:
            OperationError: If the account could not be deleted
        """
        logger.info(f"Deleting account {account_id} (version {version})")
        url = self.client.url(f"{RESOURCE_PATH}/{quote(account_id, safe='')}?version={version}")
        self._send("DELETE", url, None, expected_status=204)

    def _send(self, method: str, url: str, body: Optional[bytes], expected_status: int) -> Any:
        try:
            response = self.client.perform_request(method, url, body)
        except FatalOperationFailure as e:
            raise self._operation_error(e.response, e.status_code, e.body) from e
        except RetryBudgetExhausted as e:
            outcome = e.outcome
            if outcome is not None and outcome.response is not None:
                raise self._operation_error(outcome.response, outcome.status_code, outcome.body) from e
            raise OperationError(f"there was a problem performing the request: {e}") from e
        except Form3Error as e:
            raise OperationError(f"there was a problem performing the request: {e}") from e

        if response.status_code != expected_status:
            raise self._operation_error(response, response.status_code, response.content)
        return response

    def _operation_error(self, response: Any, status_code: int, body: bytes) -> OperationError:
        """Build an error message from the status line and the API error message"""
        reason = getattr(response, "reason", None) or getattr(response, "reason_phrase", "")
        message = f"could not perform operation, Response: HTTP {status_code} {reason}".rstrip()

        error_message = None
        try:
            error_message = json.loads(body).get("error_message")
        except (TypeError, ValueError, AttributeError):
            pass
        if error_message:
            message = f"{message}: {error_message}"

        logger.debug(message)
        return OperationError(message, body=body, status_code=status_code)

    def _decode(self, response: Any) -> Account:
        try:
            raw = self.read_body(response)
        except Exception as e:
            raise OperationError(f"there was a problem reading the response body: {e}") from e

        try:
            return Account.from_dict(self.json_unmarshal(raw))
        except Exception as e:
            raise OperationError(f"there was a problem unmarshalling the response body: {e}") from e
