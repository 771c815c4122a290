"""Load optional board configuration from `.taskboard/config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .constants import (
    CONFIG_FILE,
    DEFAULT_CLICK_COOLDOWN_MS,
    DEFAULT_FRAME_INTERVAL_MS,
    DEFAULT_SYSTEM_AUTHOR,
    STATE_DIR_NAME,
)
from .io_utils import _load_data_with_error


@dataclass(frozen=True)
class BoardConfig:
    """Tunables for the drag engine and selection."""

    frame_interval_ms: int = DEFAULT_FRAME_INTERVAL_MS
    click_cooldown_ms: int = DEFAULT_CLICK_COOLDOWN_MS
    system_author: str = DEFAULT_SYSTEM_AUTHOR

    @property
    def frame_interval(self) -> float:
        return self.frame_interval_ms / 1000.0

    @property
    def click_cooldown(self) -> float:
        return self.click_cooldown_ms / 1000.0


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _non_negative_int(raw: Any, default: int) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return default
    return max(0, int(raw))


def parse_board_config(data: dict[str, Any]) -> BoardConfig:
    """Build a :class:`BoardConfig` from a raw mapping, ignoring bad values.

    Args:
        data: Parsed config mapping.

    Returns:
        The config with defaults for any missing or invalid key.
    """
    author = _get_nested(data, "history", "system_author")
    return BoardConfig(
        frame_interval_ms=_non_negative_int(
            _get_nested(data, "drag", "frame_interval_ms"), DEFAULT_FRAME_INTERVAL_MS
        ),
        click_cooldown_ms=_non_negative_int(
            _get_nested(data, "selection", "click_cooldown_ms"), DEFAULT_CLICK_COOLDOWN_MS
        ),
        system_author=author if isinstance(author, str) and author.strip() else DEFAULT_SYSTEM_AUTHOR,
    )


def load_board_config(project_dir: Path) -> tuple[BoardConfig, str | None]:
    """Load the optional board config file.

    Args:
        project_dir: Directory holding the `.taskboard/` state directory.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing or cannot
        be parsed, the default config is returned.
    """
    path = project_dir.resolve() / STATE_DIR_NAME / CONFIG_FILE
    data, err = _load_data_with_error(path, {})
    if err:
        return BoardConfig(), err
    return parse_board_config(data), None
