"""
Configuration loading.

Settings come from a medledger.toml file. The schema is intentionally
small; everything has a default, so running without a config file works.

    [store]
    path = ".medledger/state.json"

    [audit]
    reads = true
    collisions = "sequence"

    [limits]
    max_record_id_length = 64
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

from .engine.audit import COLLISION_MODES
from .engine.validation import DEFAULT_MAX_RECORD_ID_LENGTH
from .errors import ConfigError

CONFIG_FILENAME = "medledger.toml"
DEFAULT_STATE_PATH = Path(".medledger") / "state.json"
STATE_ENV_VAR = "MEDLEDGER_STATE"


@dataclass(frozen=True)
class Settings:
    state_path: Path = DEFAULT_STATE_PATH
    audit_reads: bool = True
    audit_collisions: str = "sequence"
    max_record_id_length: int = DEFAULT_MAX_RECORD_ID_LENGTH
    source: Path | None = None  # config file these settings came from


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def load_settings(path: Path) -> Settings:
    """
    Load settings from a TOML file.

    Relative store paths are resolved against the config file's directory.

    Raises:
        ConfigError: If the file is malformed or holds invalid values
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse {path}: {e}") from e

    store = _coerce_dict(data.get("store"))
    audit = _coerce_dict(data.get("audit"))
    limits = _coerce_dict(data.get("limits"))

    state_path = Path(str(store.get("path", DEFAULT_STATE_PATH)))
    if not state_path.is_absolute():
        state_path = path.parent / state_path

    reads = audit.get("reads", True)
    if not isinstance(reads, bool):
        raise ConfigError("audit.reads must be a boolean")

    collisions = str(audit.get("collisions", "sequence")).strip()
    if collisions not in COLLISION_MODES:
        raise ConfigError(f"audit.collisions must be one of {', '.join(COLLISION_MODES)} (got {collisions!r})")

    max_len = limits.get("max_record_id_length", DEFAULT_MAX_RECORD_ID_LENGTH)
    if isinstance(max_len, bool) or not isinstance(max_len, int) or max_len <= 0:
        raise ConfigError("limits.max_record_id_length must be a positive integer")

    return Settings(
        state_path=state_path,
        audit_reads=reads,
        audit_collisions=collisions,
        max_record_id_length=max_len,
        source=path,
    )


def find_config(start: Path) -> Path | None:
    """Find medledger.toml by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_settings(
    config_path: Path | None = None,
    *,
    start: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Resolve effective settings.

    Precedence: explicit config file, else medledger.toml found from
    `start` (default: cwd), else defaults. MEDLEDGER_STATE then overrides
    the store path.
    """
    environ = os.environ if environ is None else environ

    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        settings = load_settings(config_path)
    else:
        found = find_config(start or Path.cwd())
        settings = load_settings(found) if found else Settings()

    override = environ.get(STATE_ENV_VAR)
    if override:
        settings = replace(settings, state_path=Path(override))
    return settings
