from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from .dates import date_key
from .models import AppData, HistoryEntry


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 200


def default_db_path() -> str:
    return os.path.join(".", "data", "habitlite.json")


def resolve_db_path() -> str:
    return os.environ.get("HABITLITE_DB", default_db_path())


def history_limit() -> int:
    raw = os.environ.get("HABITLITE_HISTORY_LIMIT", "")
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_HISTORY_LIMIT
    return value if value > 0 else DEFAULT_HISTORY_LIMIT


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


# -----------------------------
# Legacy payloads
# -----------------------------

def normalize_stored_task(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate fields written by older clients onto the per-date ledgers:
    - task `completed` flag      -> completedDates[anchor]
    - subtask `completed` flag   -> subtask completedDates[anchor]
    - global quantum progress    -> progressByDate[anchor] (globals kept)
    """
    task = dict(raw)
    anchor = date_key(task.get("dateKey") or task.get("date"))
    completed_dates = task.get("completedDates")
    completed_dates = dict(completed_dates) if isinstance(completed_dates, dict) else {}

    legacy_done = task.pop("completed", None)
    if legacy_done is True and anchor and not completed_dates.get(anchor):
        completed_dates[anchor] = True
    task["completedDates"] = completed_dates
    if anchor:
        task["dateKey"] = anchor

    quantum = task.get("quantum")
    if isinstance(quantum, dict) and anchor:
        quantum = dict(quantum)
        by_date = quantum.get("progressByDate")
        by_date = dict(by_date) if isinstance(by_date, dict) else {}
        done_seconds = quantum.get("doneSeconds")
        done_count = quantum.get("doneCount")
        has_legacy = isinstance(done_seconds, (int, float)) or isinstance(done_count, (int, float))
        if has_legacy and anchor not in by_date:
            by_date[anchor] = {
                "doneSeconds": done_seconds if isinstance(done_seconds, (int, float)) else 0,
                "doneCount": done_count if isinstance(done_count, (int, float)) else 0,
            }
        quantum["progressByDate"] = by_date
        task["quantum"] = quantum

    subtasks = task.get("subtasks")
    if isinstance(subtasks, list):
        migrated = []
        for sub in subtasks:
            if not isinstance(sub, dict):
                continue
            sub = dict(sub)
            sub_dates = sub.get("completedDates")
            sub_dates = dict(sub_dates) if isinstance(sub_dates, dict) else {}
            if sub.get("completed") is True and anchor and not sub_dates.get(anchor):
                sub_dates[anchor] = True
            sub["completedDates"] = sub_dates
            migrated.append(sub)
        task["subtasks"] = migrated
    return task


# -----------------------------
# Load / save
# -----------------------------

def load_data(path: Optional[str] = None) -> AppData:
    p = path or resolve_db_path()
    if not os.path.exists(p):
        return AppData()
    try:
        with open(p, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError):
        logger.warning("Failed to load %s; starting empty", p, exc_info=True)
        return AppData()
    if not isinstance(raw, dict):
        logger.warning("Unexpected payload in %s; starting empty", p)
        return AppData()

    tasks = raw.get("tasks")
    if isinstance(tasks, list):
        raw = dict(raw)
        raw["tasks"] = [normalize_stored_task(t) for t in tasks if isinstance(t, dict)]
    return AppData.from_jsonable(raw)


def save_data(data: AppData, path: Optional[str] = None) -> None:
    p = path or resolve_db_path()
    ensure_parent_dir(p)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(data.to_jsonable(), f, ensure_ascii=False, indent=2)


# -----------------------------
# History log
# -----------------------------

def append_history(
    history: List[HistoryEntry],
    entry_type: str,
    details: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[HistoryEntry]:
    """Newest first, capped at `limit` (HABITLITE_HISTORY_LIMIT by default)."""
    at = now or datetime.now()
    entry = HistoryEntry(
        id=f"{int(at.timestamp() * 1000)}-{uuid.uuid4().hex[:6]}",
        type=entry_type,
        timestamp=at.isoformat(),
        details=dict(details or {}),
    )
    cap = limit if limit is not None else history_limit()
    return ([entry] + list(history))[: max(0, cap)]
