"""Tests for container wiring."""

import asyncio

from wa_pairing.adapters.bridge_socket import HttpxBridgeSocketFactory
from wa_pairing.containers import build_container


def test_build_container_wires_services(settings) -> None:
    container = build_container(settings)

    assert isinstance(container.socket_factory, HttpxBridgeSocketFactory)
    assert container.pairing_service.store is container.store
    assert container.pairing_service.timers is container.timers
    assert container.pairing_service.timings.pending_timeout == 60
    assert container.store.root_dir == settings.sessions_dir
    asyncio.run(container.close_resources())
