"""Connection events emitted by the messaging socket."""

from dataclasses import dataclass
from enum import IntEnum

UNKNOWN_DISCONNECT_CODE = 500


class DisconnectReason(IntEnum):
    """Disconnect status codes reported by the messaging library."""

    LOGGED_OUT = 401
    FORBIDDEN = 403
    CONNECTION_LOST = 408
    MULTIDEVICE_MISMATCH = 411
    CONNECTION_CLOSED = 428
    CONNECTION_REPLACED = 440
    BAD_SESSION = 500
    UNAVAILABLE_SERVICE = 503
    RESTART_REQUIRED = 515


@dataclass(frozen=True)
class ConnectionUpdate:
    """A single connection state change for one socket."""

    connection: str | None
    status_code: int | None = None

    @property
    def is_open(self) -> bool:
        return self.connection == "open"

    @property
    def is_closed(self) -> bool:
        return self.connection == "close"

    @property
    def disconnect_code(self) -> int:
        """Return the disconnect code, defaulting when the library sent none."""
        if self.status_code is None:
            return UNKNOWN_DISCONNECT_CODE
        return self.status_code

    @property
    def is_logged_out(self) -> bool:
        return self.is_closed and self.disconnect_code == DisconnectReason.LOGGED_OUT
