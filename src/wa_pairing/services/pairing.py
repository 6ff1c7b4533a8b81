"""Pairing orchestration: socket setup, code requests and connection events."""

import asyncio
import logging
import re
from dataclasses import dataclass, field

from wa_pairing.adapters.bridge_socket import MessagingSocket, SocketFactory
from wa_pairing.domain.connection import ConnectionUpdate
from wa_pairing.domain.sessions import SessionStatus
from wa_pairing.services.credentials import encode_credentials_dir
from wa_pairing.services.store import SessionStore
from wa_pairing.services.timers import LifecycleTimers

logger = logging.getLogger(__name__)

WATCHDOG_TIMER = "pending-watchdog"
EXPIRY_TIMER = "connected-expiry"

_NON_DIGITS = re.compile(r"[^0-9]")
_CODE_GROUP = 4


class InvalidPhoneNumberError(ValueError):
    """Raised when a phone number is missing or too short."""


class PairingError(RuntimeError):
    """Raised when a socket or pairing code cannot be obtained."""


@dataclass(frozen=True)
class PairingTimings:
    """Delays and lifetimes used by the orchestrator, in seconds."""

    pairing_settle: float = 3.0
    credentials_settle: float = 3.0
    pending_timeout: float = 5 * 60
    connected_ttl: float = 15 * 60


@dataclass(frozen=True)
class PairingResult:
    """Outcome of a successful pairing code request."""

    session_id: str
    code: str


def normalize_phone_number(raw: str | None, min_digits: int = 7) -> str:
    """Strip everything but digits and validate the length."""
    if not raw:
        raise InvalidPhoneNumberError("Phone number is required")
    digits = _NON_DIGITS.sub("", raw)
    if len(digits) < min_digits:
        raise InvalidPhoneNumberError(
            "Invalid phone number, must include country code"
        )
    return digits


def format_pairing_code(code: str) -> str:
    """Split a pairing code into dash separated groups of four."""
    groups = [code[i : i + _CODE_GROUP] for i in range(0, len(code), _CODE_GROUP)]
    return "-".join(groups) or code


@dataclass
class PairingService:
    """Drives one socket per session from code request to connection."""

    store: SessionStore
    socket_factory: SocketFactory
    timers: LifecycleTimers
    timings: PairingTimings = field(default_factory=PairingTimings)
    min_phone_digits: int = 7
    provisioning_failures: int = field(default=0, init=False)

    async def request_pairing(self, raw_phone: str | None) -> PairingResult:
        """Create a session and return a human readable pairing code.

        Validation happens before anything is allocated. Any later failure
        removes the session again and surfaces as ``PairingError``.
        """
        phone_number = normalize_phone_number(raw_phone, self.min_phone_digits)
        session_id = self.store.create(phone_number)
        try:
            code = await self._provision(session_id, phone_number)
        except Exception as exc:
            await self.remove_session(session_id)
            self.provisioning_failures += 1
            logger.error(
                "Pairing failed for %s (%d failures so far)",
                session_id,
                self.provisioning_failures,
                exc_info=True,
            )
            if isinstance(exc, PairingError):
                raise
            raise PairingError(f"Server error: {exc}") from exc
        formatted = format_pairing_code(code)
        logger.info("Pairing code issued", extra={"session_id": session_id})
        return PairingResult(session_id=session_id, code=formatted)

    async def handle_connection_update(
        self, session_id: str, update: ConnectionUpdate
    ) -> None:
        """Apply a connection notification to the session."""
        logger.info(
            "Connection update %s",
            update.connection,
            extra={"session_id": session_id},
        )
        if update.is_open:
            await self._on_open(session_id)
        elif update.is_closed:
            logger.info(
                "Connection closed with code %d",
                update.disconnect_code,
                extra={"session_id": session_id},
            )
            if update.is_logged_out:
                await self.remove_session(session_id)

    async def remove_session(self, session_id: str) -> None:
        """Cancel timers and release everything held by the session."""
        waiting = self.timers.pending(session_id)
        if waiting:
            logger.info(
                "Cancelling timers %s",
                ", ".join(waiting),
                extra={"session_id": session_id},
            )
        self.timers.cancel(session_id)
        await self.store.remove(session_id)

    async def expire_if_pending(self, session_id: str) -> None:
        """Watchdog callback: drop sessions that never connected."""
        record = self.store.get(session_id)
        if record is None or record.status != SessionStatus.PENDING:
            return
        logger.info("Pending session timed out", extra={"session_id": session_id})
        await self.remove_session(session_id)

    async def expire(self, session_id: str) -> None:
        """Expiry callback: drop the session regardless of its state."""
        logger.info("Session lifetime elapsed", extra={"session_id": session_id})
        await self.remove_session(session_id)

    async def shutdown(self) -> None:
        """Stop every timer and release every live session."""
        await self.timers.cancel_all()
        await self.store.close_all()

    async def _provision(self, session_id: str, phone_number: str) -> str:
        record = self.store.get(session_id)
        if record is None:
            raise PairingError("Session disappeared during setup")
        socket = await self.socket_factory.create_socket(record.session_dir)
        self.store.update(session_id, socket=socket)
        self._subscribe(session_id, socket)
        self.timers.schedule(
            session_id,
            WATCHDOG_TIMER,
            self.timings.pending_timeout,
            self.expire_if_pending,
        )

        await asyncio.sleep(self.timings.pairing_settle)
        self._ensure_live(session_id)
        try:
            code = await socket.request_pairing_code(phone_number)
        except Exception as exc:
            raise PairingError(f"Failed to get pairing code: {exc}") from exc
        if not code:
            raise PairingError("Failed to get pairing code: empty code")
        self._ensure_live(session_id)
        return code

    def _ensure_live(self, session_id: str) -> None:
        if self.store.get(session_id) is None:
            raise PairingError(
                "Failed to get pairing code: session closed during setup"
            )

    def _subscribe(self, session_id: str, socket: MessagingSocket) -> None:
        async def on_connection(update: ConnectionUpdate) -> None:
            await self.handle_connection_update(session_id, update)

        socket.on_connection_update(on_connection)
        socket.on_credentials_update(socket.save_credentials)

    async def _on_open(self, session_id: str) -> None:
        current = self.store.get(session_id)
        if current is None or current.status != SessionStatus.PENDING:
            return
        record = self.store.update(session_id, status=SessionStatus.CONNECTED)
        if record is None or record.socket is None:
            return
        logger.info("Session connected", extra={"session_id": session_id})
        self.timers.schedule(
            session_id, EXPIRY_TIMER, self.timings.connected_ttl, self.expire
        )
        try:
            await record.socket.save_credentials()
        except Exception:
            logger.exception(
                "Failed to save credentials", extra={"session_id": session_id}
            )
        await asyncio.sleep(self.timings.credentials_settle)

        if self.store.get(session_id) is None:
            return
        encoded = await asyncio.to_thread(encode_credentials_dir, record.session_dir)
        if encoded is None:
            logger.warning(
                "Session string not ready", extra={"session_id": session_id}
            )
            return
        self.store.update(session_id, encoded_credentials=encoded)
        logger.info("Session string ready", extra={"session_id": session_id})
