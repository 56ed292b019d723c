from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


WEEKDAY_KEYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")

LEGACY_OPTIONS = ("off", "daily", "weekly", "monthly", "weekend", "weekdays", "custom", "interval")
FREQUENCIES = ("daily", "weekly", "monthly")

TASK_TYPE_CHECKBOX = "checkbox"
TASK_TYPE_QUANTUM = "quantum"

QUANTUM_TIMER = "timer"
QUANTUM_COUNT = "count"


# -----------------------------
# Coercion helpers
# -----------------------------

def _as_int(raw: Any, default: int = 0) -> int:
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw == raw else default  # NaN
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return default
    return default


def _as_opt_str(raw: Any) -> Optional[str]:
    return raw if isinstance(raw, str) else None


def _as_dict(raw: Any) -> Dict[str, Any]:
    return raw if isinstance(raw, dict) else {}


def _coerce_interval(raw: Any) -> Optional[int]:
    """None stays None (means 1); anything unusable becomes 0 (never occurs)."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else 0
    if isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        return int(raw.strip())
    return 0


def _weekday_tokens(raw: Any) -> List[str]:
    if not isinstance(raw, (list, tuple, set)):
        return []
    out: List[str] = []
    for item in raw:
        if isinstance(item, str) and item.strip().lower() in WEEKDAY_KEYS:
            out.append(item.strip().lower())
    return out


def _month_days(raw: Any) -> List[int]:
    if not isinstance(raw, (list, tuple, set)):
        return []
    out: List[int] = []
    for item in raw:
        day = _as_int(item, default=0)
        if 1 <= day <= 31:
            out.append(day)
    return out


def _bool_map(raw: Any, *, keep_false: bool) -> Dict[str, bool]:
    out: Dict[str, bool] = {}
    for key, value in _as_dict(raw).items():
        if not isinstance(key, str):
            continue
        if value is True or value == 1:
            out[key] = True
        elif keep_false and value is False:
            out[key] = False
    return out


# -----------------------------
# Repeat rule
# -----------------------------

@dataclass
class RepeatRule:
    # legacy discrete schema
    option: Optional[str] = None            # see LEGACY_OPTIONS
    # parametric schema
    enabled: Optional[bool] = None
    frequency: Optional[str] = None         # see FREQUENCIES
    # shared
    interval: Optional[int] = None          # None means 1
    weekdays: List[str] = field(default_factory=list)
    month_days: List[int] = field(default_factory=list)
    end_date: Optional[str] = None          # YYYY-MM-DD, inclusive

    def is_parametric(self) -> bool:
        if isinstance(self.enabled, bool):
            return True
        return isinstance(self.frequency, str) and self.frequency.strip() != ""

    def is_inert(self) -> bool:
        if self.is_parametric():
            return self.enabled is False
        return not self.option or self.option == "off"

    def to_jsonable(self) -> dict:
        out: Dict[str, Any] = {}
        if self.option is not None:
            out["option"] = self.option
        if self.enabled is not None:
            out["enabled"] = self.enabled
        if self.frequency is not None:
            out["frequency"] = self.frequency
        if self.interval is not None:
            out["interval"] = self.interval
        if self.weekdays:
            out["weekdays"] = list(self.weekdays)
        if self.month_days:
            out["monthDays"] = list(self.month_days)
        if self.end_date is not None:
            out["endDate"] = self.end_date
        return out

    @staticmethod
    def from_jsonable(raw: Any) -> Optional["RepeatRule"]:
        if not isinstance(raw, dict):
            return None
        enabled = raw.get("enabled")
        option = raw.get("option")
        frequency = raw.get("frequency")
        return RepeatRule(
            option=option.strip().lower() if isinstance(option, str) else None,
            enabled=enabled if isinstance(enabled, bool) else None,
            frequency=frequency.strip().lower() if isinstance(frequency, str) else None,
            interval=_coerce_interval(raw.get("interval")),
            weekdays=_weekday_tokens(raw.get("weekdays")),
            month_days=_month_days(raw.get("monthDays")),
            end_date=_as_opt_str(raw.get("endDate")),
        )


# -----------------------------
# Time of day
# -----------------------------

@dataclass
class TimeOfDay:
    hour: int = 12
    minute: int = 0
    meridiem: str = "AM"    # "AM" | "PM"

    def to_minutes(self) -> int:
        hour = self.hour % 12
        if self.meridiem.upper() == "PM":
            hour += 12
        return hour * 60 + self.minute

    def to_jsonable(self) -> dict:
        return {"hour": self.hour, "minute": self.minute, "meridiem": self.meridiem}

    @staticmethod
    def from_jsonable(raw: Any) -> Optional["TimeOfDay"]:
        if not isinstance(raw, dict):
            return None
        meridiem = raw.get("meridiem")
        return TimeOfDay(
            hour=_as_int(raw.get("hour"), 12),
            minute=_as_int(raw.get("minute"), 0),
            meridiem=meridiem.upper() if isinstance(meridiem, str) else "AM",
        )


@dataclass
class TaskTime:
    specified: bool = False
    mode: str = "point"                     # "point" | "period"
    point: Optional[TimeOfDay] = None
    period_start: Optional[TimeOfDay] = None
    period_end: Optional[TimeOfDay] = None

    def sort_minutes(self) -> Optional[int]:
        if not self.specified:
            return None
        if self.mode == "period" and self.period_start is not None:
            return self.period_start.to_minutes()
        if self.point is not None:
            return self.point.to_minutes()
        return None

    def to_jsonable(self) -> dict:
        out: Dict[str, Any] = {"specified": self.specified, "mode": self.mode}
        if self.point is not None:
            out["point"] = self.point.to_jsonable()
        if self.period_start is not None or self.period_end is not None:
            out["period"] = {
                "start": self.period_start.to_jsonable() if self.period_start else None,
                "end": self.period_end.to_jsonable() if self.period_end else None,
            }
        return out

    @staticmethod
    def from_jsonable(raw: Any) -> Optional["TaskTime"]:
        if not isinstance(raw, dict):
            return None
        period = _as_dict(raw.get("period"))
        mode = raw.get("mode")
        return TaskTime(
            specified=bool(raw.get("specified")),
            mode=mode if mode in ("point", "period") else "point",
            point=TimeOfDay.from_jsonable(raw.get("point")),
            period_start=TimeOfDay.from_jsonable(period.get("start")),
            period_end=TimeOfDay.from_jsonable(period.get("end")),
        )


# -----------------------------
# Quantum
# -----------------------------

@dataclass
class QuantumProgress:
    done_seconds: int = 0
    done_count: int = 0

    def to_jsonable(self) -> dict:
        return {"doneSeconds": self.done_seconds, "doneCount": self.done_count}

    @staticmethod
    def from_jsonable(raw: Any) -> "QuantumProgress":
        raw = _as_dict(raw)
        return QuantumProgress(
            done_seconds=max(0, _as_int(raw.get("doneSeconds"))),
            done_count=max(0, _as_int(raw.get("doneCount"))),
        )


@dataclass
class Quantum:
    mode: str = QUANTUM_TIMER               # "timer" | "count"
    total_seconds: int = 0                  # timer target
    count_value: int = 0                    # count target
    count_unit: str = ""
    done_seconds: Optional[int] = None      # global progress, one-off tasks
    done_count: Optional[int] = None
    progress_by_date: Dict[str, QuantumProgress] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def target(self) -> int:
        if self.mode == QUANTUM_TIMER:
            return max(0, self.total_seconds)
        if self.mode == QUANTUM_COUNT:
            return max(0, self.count_value)
        return 0

    def to_jsonable(self) -> dict:
        out: Dict[str, Any] = dict(self.extra)
        out["mode"] = self.mode
        out["timer"] = {"totalSeconds": self.total_seconds}
        out["count"] = {"value": self.count_value, "unit": self.count_unit}
        if self.done_seconds is not None:
            out["doneSeconds"] = self.done_seconds
        if self.done_count is not None:
            out["doneCount"] = self.done_count
        out["progressByDate"] = {k: v.to_jsonable() for k, v in self.progress_by_date.items()}
        return out

    @staticmethod
    def from_jsonable(raw: Any) -> Optional["Quantum"]:
        if not isinstance(raw, dict):
            return None
        timer = _as_dict(raw.get("timer"))
        if "totalSeconds" in timer:
            total_seconds = _as_int(timer.get("totalSeconds"))
        else:
            # older clients stored the target as minutes + seconds
            total_seconds = _as_int(timer.get("minutes")) * 60 + _as_int(timer.get("seconds"))
        count = _as_dict(raw.get("count"))
        unit = count.get("unit")
        done_seconds = raw.get("doneSeconds")
        done_count = raw.get("doneCount")
        known = {"mode", "timer", "count", "doneSeconds", "doneCount", "progressByDate"}
        return Quantum(
            mode=raw.get("mode") if raw.get("mode") in (QUANTUM_TIMER, QUANTUM_COUNT) else QUANTUM_TIMER,
            total_seconds=max(0, total_seconds),
            count_value=max(0, _as_int(count.get("value"))),
            count_unit=unit.strip() if isinstance(unit, str) else "",
            done_seconds=max(0, _as_int(done_seconds)) if isinstance(done_seconds, (int, float)) else None,
            done_count=max(0, _as_int(done_count)) if isinstance(done_count, (int, float)) else None,
            progress_by_date={
                k: QuantumProgress.from_jsonable(v)
                for k, v in _as_dict(raw.get("progressByDate")).items()
                if isinstance(k, str)
            },
            extra={k: v for k, v in raw.items() if k not in known},
        )


# -----------------------------
# Task & subtask
# -----------------------------

@dataclass
class Subtask:
    id: str
    title: str = ""
    completed_dates: Dict[str, bool] = field(default_factory=dict)  # tri-state
    completed: bool = False                 # legacy flag, read only without a date

    def to_jsonable(self) -> dict:
        out: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "completedDates": dict(self.completed_dates),
        }
        if self.completed:
            out["completed"] = True
        return out

    @staticmethod
    def from_jsonable(raw: Any) -> Optional["Subtask"]:
        if not isinstance(raw, dict) or raw.get("id") is None:
            return None
        title = raw.get("title")
        return Subtask(
            id=str(raw["id"]),
            title=title if isinstance(title, str) else "",
            completed_dates=_bool_map(raw.get("completedDates"), keep_false=True),
            completed=raw.get("completed") is True,
        )


@dataclass
class Task:
    id: str
    title: str = ""
    anchor_date: Optional[str] = None       # YYYY-MM-DD
    repeat: Optional[RepeatRule] = None
    completed_dates: Dict[str, bool] = field(default_factory=dict)  # sparse, True only
    type: str = TASK_TYPE_CHECKBOX          # "checkbox" | "quantum"
    quantum: Optional[Quantum] = None
    subtasks: List[Subtask] = field(default_factory=list)
    tag: Optional[str] = None
    tag_label: Optional[str] = None
    time: Optional[TaskTime] = None
    reminder: Optional[str] = None          # key of reminders.REMINDER_OFFSETS
    extra: Dict[str, Any] = field(default_factory=dict)

    def is_quantum(self) -> bool:
        return self.type == TASK_TYPE_QUANTUM and self.quantum is not None

    def is_repeating(self) -> bool:
        return self.repeat is not None and not self.repeat.is_inert()

    def to_jsonable(self) -> dict:
        out: Dict[str, Any] = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "title": self.title,
                "dateKey": self.anchor_date,
                "completedDates": dict(self.completed_dates),
                "type": self.type,
                "subtasks": [s.to_jsonable() for s in self.subtasks],
            }
        )
        if self.repeat is not None:
            out["repeat"] = self.repeat.to_jsonable()
        if self.quantum is not None:
            out["quantum"] = self.quantum.to_jsonable()
        if self.tag is not None:
            out["tag"] = self.tag
        if self.tag_label is not None:
            out["tagLabel"] = self.tag_label
        if self.time is not None:
            out["time"] = self.time.to_jsonable()
        if self.reminder is not None:
            out["reminder"] = self.reminder
        return out

    @staticmethod
    def from_jsonable(raw: Any) -> Optional["Task"]:
        if not isinstance(raw, dict) or raw.get("id") is None:
            return None
        from .dates import date_key  # dates imports WEEKDAY_KEYS from here

        title = raw.get("title")
        task_type = raw.get("type")
        subtasks = raw.get("subtasks")
        known = {
            "id", "title", "dateKey", "date", "repeat", "completedDates", "type", "quantum",
            "subtasks", "tag", "tagLabel", "time", "reminder",
        }
        return Task(
            id=str(raw["id"]),
            title=title if isinstance(title, str) else "",
            anchor_date=date_key(raw.get("dateKey") or raw.get("date")),
            repeat=RepeatRule.from_jsonable(raw.get("repeat")),
            completed_dates=_bool_map(raw.get("completedDates"), keep_false=False),
            type=TASK_TYPE_QUANTUM if task_type == TASK_TYPE_QUANTUM else TASK_TYPE_CHECKBOX,
            quantum=Quantum.from_jsonable(raw.get("quantum")),
            subtasks=[
                s for s in (Subtask.from_jsonable(item) for item in subtasks or []) if s is not None
            ] if isinstance(subtasks, list) else [],
            tag=_as_opt_str(raw.get("tag")),
            tag_label=_as_opt_str(raw.get("tagLabel")),
            time=TaskTime.from_jsonable(raw.get("time")),
            reminder=_as_opt_str(raw.get("reminder")),
            extra={k: v for k, v in raw.items() if k not in known},
        )


# -----------------------------
# Persisted document
# -----------------------------

@dataclass
class Settings:
    active_tab: str = "today"
    selected_tag_filter: str = "all"

    def to_jsonable(self) -> dict:
        return {"activeTab": self.active_tab, "selectedTagFilter": self.selected_tag_filter}

    @staticmethod
    def from_jsonable(raw: Any) -> "Settings":
        raw = _as_dict(raw)
        defaults = Settings()
        tab = raw.get("activeTab")
        tag_filter = raw.get("selectedTagFilter")
        return Settings(
            active_tab=tab if isinstance(tab, str) and tab else defaults.active_tab,
            selected_tag_filter=tag_filter if isinstance(tag_filter, str) and tag_filter else defaults.selected_tag_filter,
        )


@dataclass
class HistoryEntry:
    id: str
    type: str
    timestamp: str                          # ISO 8601
    details: Dict[str, Any] = field(default_factory=dict)

    def to_jsonable(self) -> dict:
        return {"id": self.id, "type": self.type, "timestamp": self.timestamp, "details": dict(self.details)}

    @staticmethod
    def from_jsonable(raw: Any) -> Optional["HistoryEntry"]:
        if not isinstance(raw, dict):
            return None
        entry_type = raw.get("type")
        timestamp = raw.get("timestamp")
        if not isinstance(entry_type, str) or not isinstance(timestamp, str):
            return None
        return HistoryEntry(
            id=str(raw.get("id") or ""),
            type=entry_type,
            timestamp=timestamp,
            details=_as_dict(raw.get("details")),
        )


@dataclass
class AppData:
    tasks: List[Task] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    history: List[HistoryEntry] = field(default_factory=list)  # most recent first

    def to_jsonable(self) -> dict:
        return {
            "tasks": [t.to_jsonable() for t in self.tasks],
            "settings": self.settings.to_jsonable(),
            "history": [h.to_jsonable() for h in self.history],
        }

    @staticmethod
    def from_jsonable(raw: Any) -> "AppData":
        raw = _as_dict(raw)
        tasks = raw.get("tasks")
        history = raw.get("history")
        data = AppData()
        if isinstance(tasks, list):
            data.tasks = [t for t in (Task.from_jsonable(item) for item in tasks) if t is not None]
        data.settings = Settings.from_jsonable(raw.get("settings"))
        if isinstance(history, list):
            data.history = [h for h in (HistoryEntry.from_jsonable(item) for item in history) if h is not None]
        return data
