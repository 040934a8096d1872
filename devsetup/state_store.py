from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

STATE_VERSION = "1"


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def load_state(path: str) -> Dict[str, Any]:
    p = Path(path).expanduser()
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    if _detect_format(p) == "yaml":
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text) if text.strip() else {}

    if not isinstance(data, dict):
        raise ValueError(f"State file must be an object/dict, got {type(data)}")

    return data


def save_state(path: str, state: Dict[str, Any]) -> None:
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) == "yaml":
        p.write_text(yaml.safe_dump(state, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.debug("State saved to %s", p)


def ensure_defaults(state: Dict[str, Any]) -> Dict[str, Any]:
    """Fill required keys with defaults (without overriding existing values).

    Per-run lists are reset: the record describes the latest run only.
    """

    state.setdefault("version", STATE_VERSION)
    state.setdefault("config", {})

    exe = state.setdefault("execution", {})
    exe["current_step"] = None
    exe["completed_steps"] = []
    exe["failed_steps"] = []
    exe["warnings"] = []
    exe["errors"] = []
    exe["backups"] = []
    exe.setdefault("paths", {})
    exe.setdefault("summary", {})
    return state


def mark_step_completed(state: Dict[str, Any], step_id: str) -> None:
    exe = state.setdefault("execution", {})
    completed = exe.setdefault("completed_steps", [])
    if step_id not in completed:
        completed.append(step_id)


def mark_step_failed(state: Dict[str, Any], step_id: str, error: str, *, fatal: bool) -> None:
    exe = state.setdefault("execution", {})
    failed = exe.setdefault("failed_steps", [])
    if step_id not in failed:
        failed.append(step_id)
    bucket = "errors" if fatal else "warnings"
    exe.setdefault(bucket, []).append({"step": step_id, "error": error})


def add_warning(state: Dict[str, Any], step_id: str, message: str) -> None:
    state.setdefault("execution", {}).setdefault("warnings", []).append({"step": step_id, "warning": message})


def record_backup(state: Dict[str, Any], src: Path, dst: Path) -> None:
    state.setdefault("execution", {}).setdefault("backups", []).append({"source": str(src), "backup": str(dst)})

