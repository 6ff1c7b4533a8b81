"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from wa_pairing.adapters.bridge_socket import HttpxBridgeSocketFactory, SocketFactory
from wa_pairing.config import Settings, browser_identity
from wa_pairing.services.pairing import PairingService, PairingTimings
from wa_pairing.services.store import SessionStore
from wa_pairing.services.timers import LifecycleTimers


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: SessionStore
    timers: LifecycleTimers
    socket_factory: SocketFactory
    pairing_service: PairingService
    close_resources: Callable[[], Awaitable[None]]


def timings_from_settings(settings: Settings) -> PairingTimings:
    """Collect the orchestrator delays from settings."""
    return PairingTimings(
        pairing_settle=settings.pairing_settle_seconds,
        credentials_settle=settings.credentials_settle_seconds,
        pending_timeout=settings.pending_timeout_seconds,
        connected_ttl=settings.connected_ttl_seconds,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = SessionStore(
        root_dir=resolved_settings.sessions_dir,
        id_prefix=resolved_settings.session_id_prefix,
    )
    timers = LifecycleTimers()
    socket_factory = HttpxBridgeSocketFactory.create(
        base_url=resolved_settings.bridge_url,
        browser=browser_identity(resolved_settings.browser_name),
        token=resolved_settings.bridge_token,
        poll_interval=resolved_settings.bridge_poll_interval,
    )
    pairing_service = PairingService(
        store=store,
        socket_factory=socket_factory,
        timers=timers,
        timings=timings_from_settings(resolved_settings),
        min_phone_digits=resolved_settings.min_phone_digits,
    )

    async def close_resources() -> None:
        await socket_factory.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        timers=timers,
        socket_factory=socket_factory,
        pairing_service=pairing_service,
        close_resources=close_resources,
    )
