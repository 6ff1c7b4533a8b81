"""Domain models for pairing sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wa_pairing.adapters.bridge_socket import MessagingSocket


class SessionStatus(StrEnum):
    """Lifecycle states reported by the status endpoint."""

    PENDING = "pending"
    CONNECTED = "connected"
    CLOSED = "closed"


@dataclass(frozen=True)
class SessionRecord:
    """Represents one pairing attempt held in memory."""

    id: str
    phone_number: str
    status: SessionStatus
    created_at: datetime
    session_dir: Path
    socket: "MessagingSocket | None" = None
    encoded_credentials: str | None = None

    @property
    def is_ready(self) -> bool:
        """Return true once the session string can be handed out."""
        return (
            self.status == SessionStatus.CONNECTED
            and self.encoded_credentials is not None
        )
