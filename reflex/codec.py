"""
codec.py — Blob encoding

Current format: msgpack, wrapped in a small envelope so the layout can
change again later::

    {"version": 2, "data": <structure>}

Legacy format: plain JSON text of the bare structure, as older releases
wrote it. Still readable, never written.

Decoding never raises. Anything unreadable comes back as ``None`` and
the caller carries on as if nothing had been stored.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import msgpack

log = logging.getLogger(__name__)

FORMAT_VERSION = 2

_JSON_OPENERS = (b"{", b"[", b'"')


class CodecError(Exception):
    """A structure could not be encoded."""
    pass


def encode(data: Any) -> bytes:
    try:
        return msgpack.packb({"version": FORMAT_VERSION, "data": data}, use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise CodecError(f"cannot encode {type(data).__name__}: {e}") from e


def decode(payload: bytes | str | None) -> Any | None:
    """Decode either format. ``None`` for empty, corrupt or unknown data."""
    if not payload:
        return None

    if isinstance(payload, str):
        return _decode_legacy(payload)
    if payload.lstrip()[:1] in _JSON_OPENERS:
        return _decode_legacy(payload.decode("utf-8", errors="replace"))

    try:
        envelope = msgpack.unpackb(payload, raw=False, strict_map_key=False)
    except (ValueError, TypeError, msgpack.UnpackException) as e:
        log.warning("Unreadable blob (%d bytes): %s", len(payload), e)
        return None

    if not isinstance(envelope, dict) or "data" not in envelope:
        log.warning("Blob has no envelope, ignoring it")
        return None

    version = envelope.get("version")
    if not isinstance(version, int) or version > FORMAT_VERSION:
        log.warning("Blob format version %r is not supported", version)
        return None

    return envelope["data"]


def _decode_legacy(text: str) -> Any | None:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        log.warning("Unreadable legacy blob: %s", e)
        return None
    log.debug("Read legacy JSON blob")
    return data
