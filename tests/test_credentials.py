"""Tests for the credential encoder."""

import base64
import json
from pathlib import Path

import pytest

from wa_pairing.services.credentials import (
    decode_session_string,
    encode_credentials_dir,
)


def test_encode_round_trips_directory(tmp_path: Path) -> None:
    (tmp_path / "creds.json").write_text('{"noise":"key"}', encoding="utf-8")
    (tmp_path / "a").write_text("x", encoding="utf-8")
    (tmp_path / "b").write_text("y", encoding="utf-8")

    encoded = encode_credentials_dir(tmp_path)

    assert encoded is not None
    assert decode_session_string(encoded) == {
        "a": "x",
        "b": "y",
        "creds.json": '{"noise":"key"}',
    }


def test_encode_produces_compact_base64_json(tmp_path: Path) -> None:
    (tmp_path / "creds.json").write_text("{}", encoding="utf-8")

    encoded = encode_credentials_dir(tmp_path)

    assert encoded is not None
    assert base64.b64decode(encoded) == json.dumps({"creds.json": "{}"}).replace(
        " ", ""
    ).encode()


def test_encode_returns_none_without_credentials_file(tmp_path: Path) -> None:
    (tmp_path / "pre-key-1.json").write_text("{}", encoding="utf-8")

    assert encode_credentials_dir(tmp_path) is None


def test_encode_returns_none_for_missing_directory(tmp_path: Path) -> None:
    assert encode_credentials_dir(tmp_path / "gone") is None


def test_encode_skips_subdirectories(tmp_path: Path) -> None:
    (tmp_path / "creds.json").write_text("{}", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "inner.json").write_text("{}", encoding="utf-8")

    encoded = encode_credentials_dir(tmp_path)

    assert encoded is not None
    assert set(decode_session_string(encoded)) == {"creds.json"}


def test_encode_degrades_to_none_on_unreadable_file(tmp_path: Path) -> None:
    (tmp_path / "creds.json").write_text("{}", encoding="utf-8")
    (tmp_path / "binary.bin").write_bytes(b"\xff\xfe\xfa")

    assert encode_credentials_dir(tmp_path) is None


def test_decode_rejects_malformed_strings() -> None:
    with pytest.raises(ValueError):
        decode_session_string("not base64!")
    with pytest.raises(ValueError):
        decode_session_string(base64.b64encode(b"[1, 2]").decode())


def test_encode_includes_symlinked_files(tmp_path: Path) -> None:
    target = tmp_path / "outside.json"
    target.write_text('{"shared":true}', encoding="utf-8")
    session_dir = tmp_path / "session"
    session_dir.mkdir()
    (session_dir / "creds.json").write_text("{}", encoding="utf-8")
    (session_dir / "app-state.json").symlink_to(target)

    encoded = encode_credentials_dir(session_dir)

    assert encoded is not None
    assert decode_session_string(encoded) == {
        "app-state.json": '{"shared":true}',
        "creds.json": "{}",
    }
