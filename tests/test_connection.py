"""Tests for connection update helpers."""

from wa_pairing.domain.connection import ConnectionUpdate, DisconnectReason


def test_close_without_code_defaults_to_bad_session() -> None:
    update = ConnectionUpdate(connection="close")

    assert update.is_closed
    assert update.disconnect_code == DisconnectReason.BAD_SESSION
    assert not update.is_logged_out


def test_logged_out_requires_close() -> None:
    assert ConnectionUpdate(connection="close", status_code=401).is_logged_out
    assert not ConnectionUpdate(connection="open", status_code=401).is_logged_out
    assert not ConnectionUpdate(connection="connecting").is_open
