"""Serialize a credentials directory into a single session string."""

import base64
import binascii
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

CREDENTIALS_FILE = "creds.json"


def encode_credentials_dir(session_dir: Path) -> str | None:
    """Encode every file in ``session_dir`` into one base64 string.

    Returns ``None`` while the credentials file has not been written yet, and
    also when any file cannot be read. Callers treat ``None`` as "retry
    later", never as a failure.
    """
    if not (session_dir / CREDENTIALS_FILE).is_file():
        logger.info("Credentials file missing", extra={"session_dir": str(session_dir)})
        return None

    try:
        files = _read_text_files(session_dir)
    except (OSError, UnicodeDecodeError):
        logger.warning(
            "Failed to read credentials directory",
            exc_info=True,
            extra={"session_dir": str(session_dir)},
        )
        return None

    payload = json.dumps(files, separators=(",", ":"), ensure_ascii=False)
    encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
    logger.info(
        "Encoded %d credential files (%d chars)",
        len(files),
        len(encoded),
    )
    return encoded


def decode_session_string(session_string: str) -> dict[str, str]:
    """Decode a session string back into a filename to content mapping."""
    try:
        raw = base64.b64decode(session_string.encode("ascii"), validate=True)
        files = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, json.JSONDecodeError) as exc:
        raise ValueError("Malformed session string") from exc
    if not isinstance(files, dict) or not all(
        isinstance(name, str) and isinstance(content, str)
        for name, content in files.items()
    ):
        raise ValueError("Session string does not hold a file mapping")
    return files


def _read_text_files(session_dir: Path) -> dict[str, str]:
    files: dict[str, str] = {}
    for entry in sorted(session_dir.iterdir()):
        # Direct children only; links to regular files count as files.
        if not entry.is_file():
            continue
        files[entry.name] = entry.read_text(encoding="utf-8")
    return files
