"""Request and attempt outcome models used by the request executor"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from form3.domain.errors import TransportFailure


@dataclass(frozen=True)
class RequestSpec:
    """Immutable description of one physical request"""

    method: str
    url: str
    body: Optional[bytes] = None
    headers: Dict[str, str] = field(default_factory=dict)


class OutcomeKind(str, Enum):
    """Classification of a single attempt"""

    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one physical attempt: a response or a transport error"""

    kind: OutcomeKind
    response: Any = None  # requests.Response or httpx.Response
    error: Optional[TransportFailure] = None

    @property
    def is_retryable(self) -> bool:
        return self.kind is OutcomeKind.RETRYABLE

    @property
    def status_code(self) -> Optional[int]:
        if self.response is None:
            return None
        return self.response.status_code

    @property
    def body(self) -> bytes:
        if self.response is None:
            return b""
        return self.response.content

    def describe(self) -> str:
        """Short human readable description, used in error messages"""
        if self.error is not None:
            return str(self.error)
        return f"status {self.status_code}"
