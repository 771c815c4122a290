"""Shared constants for the task board."""

from __future__ import annotations

STATE_DIR_NAME = ".taskboard"
CONFIG_FILE = "config.yaml"
TASKS_FILE = "tasks.yaml"
LOCK_FILE = "tasks.lock"
ARTIFACTS_DIR = "artifacts"
BOARD_EVENTS_FILE = "board_events.jsonl"

WINDOWS_LOCK_BYTES = 1

# Drop-target sentinel emitted by the drag source for a column's gap.
PLACEHOLDER_PREFIX = "placeholder:"

DEFAULT_SYSTEM_AUTHOR = "System"
DEFAULT_FRAME_INTERVAL_MS = 16
DEFAULT_CLICK_COOLDOWN_MS = 300

HISTORY_STATUS_CHANGE = "status_change"
HISTORY_EVENT_TYPES = (
    "comment",
    "email",
    "call",
    "whatsapp",
    HISTORY_STATUS_CHANGE,
    "assignee_change",
    "created",
)
