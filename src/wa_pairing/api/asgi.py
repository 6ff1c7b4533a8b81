"""ASGI entrypoint for the pairing API."""

from wa_pairing.api.app import create_app
from wa_pairing.containers import build_container

app = create_app(build_container())
