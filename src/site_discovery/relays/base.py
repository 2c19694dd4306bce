"""Abstract base class and error taxonomy for network relays."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum

import httpx

from site_discovery.config import Settings

logger = logging.getLogger(__name__)


class RelayKind(str, Enum):
    """Explicit tag for each relay; headers and URL shape are looked up by it."""

    CORS_SH = "cors_sh"
    CODETABS = "codetabs"
    CORSPROXY_IO = "corsproxy_io"
    CORS_ANYWHERE = "cors_anywhere"
    RENDER = "render"


class FailureReason(str, Enum):
    BLOCKED = "blocked"
    NETWORK = "network"
    ABORTED = "aborted"
    OTHER = "other"


class RelayError(Exception):
    """Raised when a page could not be fetched through a relay."""

    def __init__(
        self,
        message: str,
        *,
        reason: FailureReason = FailureReason.OTHER,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code


class RelayStatusError(RelayError):
    """The relay answered, but not with a 2xx status."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        reason = FailureReason.BLOCKED if status_code == 403 else FailureReason.OTHER
        super().__init__(
            message or f"HTTP {status_code}",
            reason=reason,
            status_code=status_code,
        )


class RelayAborted(RelayError):
    """The crawl was stopped while the request was in flight."""

    def __init__(self, message: str = "Fetch aborted") -> None:
        super().__init__(message, reason=FailureReason.ABORTED)


class Relay(ABC):
    """Contract for an intermediary that fetches a remote page on our behalf."""

    kind: RelayKind

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def name(self) -> str:
        return self.kind.value

    @abstractmethod
    async def fetch(self, client: httpx.AsyncClient, url: str) -> str:
        """
        Fetch the raw markup for ``url``.

        Returns:
            The response body.

        Raises:
            RelayError: on any non-2xx status, transport failure, or
            unreadable body. No retries happen here.
        """
        ...

    def _raise_for_status(self, response: httpx.Response) -> None:
        if not response.is_success:
            raise RelayStatusError(
                response.status_code,
                f"HTTP {response.status_code}: {response.reason_phrase}",
            )

    def _wrap_request_error(self, exc: httpx.RequestError) -> RelayError:
        logger.debug("%s request failure: %r", self.name, exc)
        network = isinstance(exc, httpx.TransportError)
        return RelayError(
            f"{self.name} request failed: {exc}",
            reason=FailureReason.NETWORK if network else FailureReason.OTHER,
        )
