"""Per-checkout CLI state kept in ``.portfolio.json``.

``serve`` records where it is listening so ``health``, ``contact`` and
``preview`` can find it from the same directory without ``--url``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


STATE_FILE = ".portfolio.json"
SERVER_SECTION = "server"


def state_path(root: Path) -> Path:
    return Path(root) / STATE_FILE


def load_state(root: Path) -> Dict[str, Any]:
    """Return the stored state, or ``{}`` when it is missing or unreadable."""

    path = state_path(root)
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_state(root: Path, state: Dict[str, Any]) -> None:
    state_path(root).write_text(json.dumps(state, indent=2, sort_keys=True) + "\n")


def remember_server(root: Path, url: str, env: str) -> Dict[str, Any]:
    state = load_state(root)
    record = {
        "url": url,
        "env": env,
        "started_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    }
    state[SERVER_SECTION] = record
    save_state(root, state)
    return record


def last_server_url(root: Path) -> Optional[str]:
    record = load_state(root).get(SERVER_SECTION)
    if not isinstance(record, dict):
        return None
    url = record.get("url")
    return url if isinstance(url, str) and url else None
