"""Shared test fixtures."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from wa_pairing.adapters.bridge_socket import (
    ConnectionHandler,
    CredentialsHandler,
    MessagingSocket,
    SocketFactory,
)
from wa_pairing.config import Settings
from wa_pairing.containers import AppContainer, timings_from_settings
from wa_pairing.domain.connection import ConnectionUpdate
from wa_pairing.services.pairing import PairingService
from wa_pairing.services.store import SessionStore
from wa_pairing.services.timers import LifecycleTimers


def default_credential_files() -> dict[str, str]:
    return {
        "creds.json": '{"me":{"id":"15551234567:1@s.whatsapp.net"}}',
        "pre-key-1.json": '{"public":"abc"}',
    }


@dataclass
class FakeMessagingSocket(MessagingSocket):
    """Fake socket that records calls and writes credentials on save."""

    session_dir: Path
    code: str = "ABCD1234"
    code_error: Exception | None = None
    close_error: Exception | None = None
    credential_files: dict[str, str] = field(default_factory=default_credential_files)
    requested_phones: list[str] = field(default_factory=list)
    connection_handlers: list[ConnectionHandler] = field(default_factory=list)
    credentials_handlers: list[CredentialsHandler] = field(default_factory=list)
    save_count: int = 0
    closed: bool = False

    async def request_pairing_code(self, phone_number: str) -> str:
        self.requested_phones.append(phone_number)
        if self.code_error is not None:
            raise self.code_error
        return self.code

    async def save_credentials(self) -> None:
        self.save_count += 1
        for name, content in self.credential_files.items():
            (self.session_dir / name).write_text(content, encoding="utf-8")

    def on_connection_update(self, handler: ConnectionHandler) -> None:
        self.connection_handlers.append(handler)

    def on_credentials_update(self, handler: CredentialsHandler) -> None:
        self.credentials_handlers.append(handler)

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error

    async def emit(self, update: ConnectionUpdate) -> None:
        for handler in self.connection_handlers:
            await handler(update)

    async def emit_credentials_update(self) -> None:
        for handler in self.credentials_handlers:
            await handler()


@dataclass
class FakeSocketFactory(SocketFactory):
    """Fake factory that hands out ``FakeMessagingSocket`` instances."""

    code: str = "ABCD1234"
    code_error: Exception | None = None
    create_error: Exception | None = None
    credential_files: dict[str, str] = field(default_factory=default_credential_files)
    sockets: list[FakeMessagingSocket] = field(default_factory=list)

    async def create_socket(self, session_dir: Path) -> FakeMessagingSocket:
        if self.create_error is not None:
            raise self.create_error
        socket = FakeMessagingSocket(
            session_dir=session_dir,
            code=self.code,
            code_error=self.code_error,
            credential_files=dict(self.credential_files),
        )
        self.sockets.append(socket)
        return socket

    @property
    def last_socket(self) -> FakeMessagingSocket:
        return self.sockets[-1]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        bridge_url="http://bridge.test",
        sessions_dir=tmp_path / "sessions",
        pairing_settle_seconds=0,
        credentials_settle_seconds=0,
        pending_timeout_seconds=60,
        connected_ttl_seconds=60,
    )


@pytest.fixture
def socket_factory() -> FakeSocketFactory:
    return FakeSocketFactory()


def build_test_container(
    settings: Settings, socket_factory: FakeSocketFactory
) -> AppContainer:
    """Wire a container around the fake socket factory."""
    store = SessionStore(
        root_dir=settings.sessions_dir, id_prefix=settings.session_id_prefix
    )
    timers = LifecycleTimers()
    pairing_service = PairingService(
        store=store,
        socket_factory=socket_factory,
        timers=timers,
        timings=timings_from_settings(settings),
        min_phone_digits=settings.min_phone_digits,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        store=store,
        timers=timers,
        socket_factory=socket_factory,
        pairing_service=pairing_service,
        close_resources=close_resources,
    )


@pytest.fixture
def container(settings: Settings, socket_factory: FakeSocketFactory) -> AppContainer:
    return build_test_container(settings, socket_factory)
