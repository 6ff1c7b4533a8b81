"""Messaging socket adapter backed by an HTTP socket bridge."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import httpx

from wa_pairing.domain.connection import ConnectionUpdate

logger = logging.getLogger(__name__)

ConnectionHandler = Callable[[ConnectionUpdate], Awaitable[None]]
CredentialsHandler = Callable[[], Awaitable[None]]


class MessagingSocket(Protocol):
    """One WhatsApp connection owned by a single pairing session."""

    async def request_pairing_code(self, phone_number: str) -> str:
        """Ask the network for a pairing code for ``phone_number``."""

    async def save_credentials(self) -> None:
        """Flush the current credential state into the session directory."""

    def on_connection_update(self, handler: ConnectionHandler) -> None:
        """Register the handler for connection open/close notifications."""

    def on_credentials_update(self, handler: CredentialsHandler) -> None:
        """Register the handler for credential mutations."""

    async def close(self) -> None:
        """End the connection and stop event delivery."""


class SocketFactory(Protocol):
    """Creates messaging sockets bound to a credentials directory."""

    async def create_socket(self, session_dir: Path) -> MessagingSocket:
        """Construct a socket whose credential state lives in ``session_dir``."""


@dataclass
class HttpxBridgeSocket:
    """Socket proxy that talks to one socket hosted by the bridge."""

    socket_id: str
    http_client: httpx.AsyncClient
    poll_interval: float = 1.0
    _connection_handlers: list[ConnectionHandler] = field(
        default_factory=list, init=False
    )
    _credentials_handlers: list[CredentialsHandler] = field(
        default_factory=list, init=False
    )
    _cursor: int = field(default=0, init=False)
    _poller: asyncio.Task[None] | None = field(default=None, init=False)
    _closed: bool = field(default=False, init=False)

    async def request_pairing_code(self, phone_number: str) -> str:
        """Request a pairing code through the bridge."""
        response = await self.http_client.post(
            f"/sockets/{self.socket_id}/pairing-code",
            json={"phone": phone_number},
            timeout=30,
        )
        response.raise_for_status()
        code = response.json().get("code")
        if not code:
            raise RuntimeError("Bridge returned no pairing code")
        return str(code)

    async def save_credentials(self) -> None:
        """Ask the bridge to persist credentials to the session directory."""
        response = await self.http_client.post(
            f"/sockets/{self.socket_id}/creds", timeout=10
        )
        response.raise_for_status()

    def on_connection_update(self, handler: ConnectionHandler) -> None:
        self._connection_handlers.append(handler)
        self._ensure_polling()

    def on_credentials_update(self, handler: CredentialsHandler) -> None:
        self._credentials_handlers.append(handler)
        self._ensure_polling()

    async def close(self) -> None:
        """Stop polling and ask the bridge to end the socket."""
        self._closed = True
        if self._poller is not None and self._poller is not asyncio.current_task():
            self._poller.cancel()
        self._poller = None
        response = await self.http_client.delete(
            f"/sockets/{self.socket_id}", timeout=10
        )
        if response.status_code != httpx.codes.NOT_FOUND:
            response.raise_for_status()

    async def poll_once(self) -> int:
        """Fetch and dispatch new events, returning how many were handled.

        Events are dispatched one at a time in bridge order; each handler is
        awaited before the next event is looked at.
        """
        response = await self.http_client.get(
            f"/sockets/{self.socket_id}/events",
            params={"after": self._cursor},
            timeout=30,
        )
        response.raise_for_status()
        events = response.json().get("events", [])
        for event in events:
            if self._closed:
                break
            self._cursor = max(self._cursor, int(event.get("seq", self._cursor)))
            await self._dispatch(event)
        return len(events)

    def _ensure_polling(self) -> None:
        if self._poller is None and not self._closed:
            self._poller = asyncio.create_task(
                self._poll_forever(), name=f"bridge-events:{self.socket_id}"
            )

    async def _poll_forever(self) -> None:
        while not self._closed:
            try:
                handled = await self.poll_once()
            except httpx.HTTPError:
                logger.warning(
                    "Bridge event poll failed",
                    exc_info=True,
                    extra={"socket_id": self.socket_id},
                )
                handled = 0
            except Exception:
                logger.exception(
                    "Bridge event handler failed", extra={"socket_id": self.socket_id}
                )
                handled = 0
            if not handled:
                await asyncio.sleep(self.poll_interval)

    async def _dispatch(self, event: dict[str, object]) -> None:
        event_type = event.get("type")
        if event_type == "connection.update":
            status_code = event.get("status_code")
            update = ConnectionUpdate(
                connection=_optional_str(event.get("connection")),
                status_code=int(status_code) if status_code is not None else None,
            )
            for handler in list(self._connection_handlers):
                await handler(update)
        elif event_type == "creds.update":
            for handler in list(self._credentials_handlers):
                await handler()
        else:
            logger.debug("Ignoring bridge event", extra={"event_type": event_type})


@dataclass
class HttpxBridgeSocketFactory:
    """Socket factory implemented with httpx against the socket bridge."""

    http_client: httpx.AsyncClient
    browser: list[str]
    poll_interval: float = 1.0

    @classmethod
    def create(
        cls,
        base_url: str,
        browser: list[str],
        token: str | None = None,
        poll_interval: float = 1.0,
    ) -> "HttpxBridgeSocketFactory":
        """Create a factory with a managed httpx session."""
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return cls(
            http_client=httpx.AsyncClient(base_url=base_url, headers=headers),
            browser=browser,
            poll_interval=poll_interval,
        )

    async def fetch_latest_version(self) -> list[int]:
        """Return the latest protocol version known to the bridge."""
        response = await self.http_client.get("/version", timeout=10)
        response.raise_for_status()
        return [int(part) for part in response.json()["version"]]

    async def create_socket(self, session_dir: Path) -> HttpxBridgeSocket:
        """Open a socket on the bridge using ``session_dir`` for auth state."""
        version = await self.fetch_latest_version()
        logger.info("Using protocol version %s", ".".join(map(str, version)))
        response = await self.http_client.post(
            "/sockets",
            json={
                "auth_dir": str(session_dir.resolve()),
                "version": version,
                "browser": self.browser,
                "sync_full_history": False,
            },
            timeout=30,
        )
        response.raise_for_status()
        return HttpxBridgeSocket(
            socket_id=str(response.json()["id"]),
            http_client=self.http_client,
            poll_interval=self.poll_interval,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _optional_str(value: object) -> str | None:
    return str(value) if value is not None else None
