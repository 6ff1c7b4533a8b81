"""In-memory registry of live pairing sessions."""

import asyncio
import logging
import secrets
import shutil
import string
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from wa_pairing.domain.sessions import SessionRecord, SessionStatus

if TYPE_CHECKING:
    from wa_pairing.adapters.bridge_socket import MessagingSocket

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_uppercase + string.digits
_ID_LENGTH = 13


def generate_session_id(prefix: str) -> str:
    """Return an opaque session id with the given prefix."""
    token = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))
    return f"{prefix}{token}"


@dataclass
class SessionStore:
    """Owns every live session record and the resources attached to it."""

    root_dir: Path
    id_prefix: str = "PAIR_"
    _records: dict[str, SessionRecord] = field(default_factory=dict, init=False)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._records

    def ids(self) -> list[str]:
        """Return the ids of all live sessions."""
        return list(self._records)

    def create(self, phone_number: str) -> str:
        """Insert a pending session with its own credentials directory."""
        session_id = generate_session_id(self.id_prefix)
        while session_id in self._records:
            session_id = generate_session_id(self.id_prefix)
        session_dir = self.root_dir / session_id
        session_dir.mkdir(parents=True, exist_ok=True)
        self._records[session_id] = SessionRecord(
            id=session_id,
            phone_number=phone_number,
            status=SessionStatus.PENDING,
            created_at=datetime.now(tz=UTC),
            session_dir=session_dir,
        )
        logger.info("Session created", extra={"session_id": session_id})
        return session_id

    def get(self, session_id: str) -> SessionRecord | None:
        """Return a session by id, if present."""
        return self._records.get(session_id)

    def update(
        self,
        session_id: str,
        *,
        status: SessionStatus | None = None,
        socket: "MessagingSocket | None" = None,
        encoded_credentials: str | None = None,
    ) -> SessionRecord | None:
        """Apply the given changes and return the new record.

        Returns ``None`` when the session has already been removed. The
        encoded credentials are written at most once.
        """
        record = self._records.get(session_id)
        if record is None:
            return None
        changes: dict[str, object] = {}
        if status is not None:
            changes["status"] = status
        if socket is not None:
            changes["socket"] = socket
        if encoded_credentials is not None and record.encoded_credentials is None:
            changes["encoded_credentials"] = encoded_credentials
        updated = replace(record, **changes)
        self._records[session_id] = updated
        return updated

    async def remove(self, session_id: str) -> SessionRecord | None:
        """Drop a session and release its socket and directory.

        Removing an unknown or already removed id is a no-op. Cleanup errors
        are logged and never raised.
        """
        record = self._records.pop(session_id, None)
        if record is None:
            return None
        if record.socket is not None:
            try:
                await record.socket.close()
            except Exception:
                logger.exception(
                    "Failed to close socket", extra={"session_id": session_id}
                )
        try:
            await asyncio.to_thread(shutil.rmtree, record.session_dir)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception(
                "Failed to delete session directory",
                extra={"session_id": session_id},
            )
        logger.info("Session removed", extra={"session_id": session_id})
        return replace(record, status=SessionStatus.CLOSED)

    async def close_all(self) -> None:
        """Remove every live session."""
        for session_id in self.ids():
            await self.remove(session_id)
