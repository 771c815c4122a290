"""Provide utility helpers for timestamps and ids."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _short_hex() -> str:
    return uuid.uuid4().hex[:8]
