from __future__ import annotations

import logging
from datetime import date, datetime
from datetime import time as dt_time
from typing import List, Optional

import pandas as pd
import streamlit as st

from habitlite.dates import date_key, normalize_date
from habitlite.edits import edit_quantum, new_task, update_task
from habitlite.ledger import find_task, is_day_complete, replace_task, toggle_task_completion, toggle_task_subtask
from habitlite.logging_setup import setup_logging
from habitlite.models import (
    AppData,
    FREQUENCIES,
    LEGACY_OPTIONS,
    Quantum,
    QUANTUM_COUNT,
    QUANTUM_TIMER,
    RepeatRule,
    Task,
    TaskTime,
    TASK_TYPE_CHECKBOX,
    TASK_TYPE_QUANTUM,
    TimeOfDay,
    WEEKDAY_KEYS,
)
from habitlite.quantum import advance_progress
from habitlite.reminders import REMINDER_OFFSETS, next_reminder_at
from habitlite.report import day_report, month_summary, profile_stats
from habitlite.storage import append_history, load_data, resolve_db_path, save_data
from habitlite.view import ALL_TAGS, resolve_tag_filter, tag_options, visible_tasks


# -----------------------------
# App setup
# -----------------------------

st.set_page_config(page_title="habitlite", layout="wide")
st.title("habitlite — daily habits & tasks")

DB_PATH = resolve_db_path()


@st.cache_resource(show_spinner=False)
def _configure_logging() -> None:
    setup_logging()


_configure_logging()
logger = logging.getLogger("habitlite.app")


@st.cache_data(show_spinner=False)
def _load_cached(path: str) -> AppData:
    return load_data(path)


def load() -> AppData:
    return _load_cached(DB_PATH)


def save(data: AppData) -> None:
    save_data(data, DB_PATH)
    _load_cached.clear()


def commit(data: AppData, updated: Task, entry_type: str, **details) -> None:
    data.tasks = replace_task(data.tasks, updated)
    data.history = append_history(data.history, entry_type, {"taskId": updated.id, **details})
    save(data)
    logger.info("%s task=%s", entry_type, updated.id)


# -----------------------------
# Sidebar navigation
# -----------------------------

pages = ["Today", "Tasks", "Calendar", "History"]
data = load()

page = st.sidebar.radio("Navigate", pages, index=pages.index(data.settings.active_tab.title()) if data.settings.active_tab.title() in pages else 0)
if page.lower() != data.settings.active_tab:
    data.settings.active_tab = page.lower()
    save(data)

st.sidebar.caption(f"DB: `{DB_PATH}`")


# -----------------------------
# Form helpers
# -----------------------------

def _clock(point: Optional[TimeOfDay]) -> Optional[dt_time]:
    if point is None:
        return None
    minutes = point.to_minutes()
    return dt_time(minutes // 60 % 24, minutes % 60)


def time_input(prefix: str, current: Optional[TaskTime] = None) -> Optional[TaskTime]:
    current = current or TaskTime()
    specified = st.checkbox("Has a time", value=current.specified, key=f"{prefix}_timed")
    if not specified:
        return TaskTime(specified=False)
    start = current.point if current.mode == "point" else current.period_start
    t = st.time_input("Start", value=_clock(start) or dt_time(9, 0), key=f"{prefix}_time")
    hour12 = t.hour % 12 or 12
    return TaskTime(
        specified=True,
        mode="point",
        point=TimeOfDay(hour=hour12, minute=t.minute, meridiem="PM" if t.hour >= 12 else "AM"),
    )


def repeat_input(prefix: str, current: Optional[RepeatRule] = None) -> Optional[RepeatRule]:
    schemas = ["none", "simple", "advanced"]
    if current is None or current.is_inert():
        schema_index = 0
    else:
        schema_index = 2 if current.is_parametric() else 1
    current = current or RepeatRule()
    interval_value = max(1, current.interval or 1)
    schema = st.radio("Repeat", schemas, index=schema_index, horizontal=True, key=f"{prefix}_schema")
    if schema == "simple":
        options = list(LEGACY_OPTIONS)
        option_index = options.index(current.option) if current.option in options else 0
        option = st.selectbox("Option", options, index=option_index, key=f"{prefix}_opt")
        weekdays = st.multiselect("Weekdays (custom)", list(WEEKDAY_KEYS), default=current.weekdays, key=f"{prefix}_wd")
        interval = st.number_input("Every N days (interval)", min_value=1, value=max(2, interval_value), step=1, key=f"{prefix}_iv")
        return RepeatRule(option=option, weekdays=list(weekdays), interval=int(interval))
    if schema == "advanced":
        frequencies = list(FREQUENCIES)
        freq_index = frequencies.index(current.frequency) if current.frequency in frequencies else 0
        frequency = st.selectbox("Frequency", frequencies, index=freq_index, key=f"{prefix}_freq")
        interval = st.number_input("Interval", min_value=1, value=interval_value, step=1, key=f"{prefix}_piv")
        weekdays = st.multiselect("Weekdays (weekly)", list(WEEKDAY_KEYS), default=current.weekdays, key=f"{prefix}_pwd")
        month_days = st.multiselect("Days of month (monthly)", list(range(1, 32)), default=current.month_days, key=f"{prefix}_md")
        end = st.text_input("End date (YYYY-MM-DD) optional", value=current.end_date or "", key=f"{prefix}_end")
        return RepeatRule(
            enabled=True,
            frequency=frequency,
            interval=int(interval),
            weekdays=list(weekdays),
            month_days=list(month_days),
            end_date=date_key(end.strip()) if end.strip() else None,
        )
    return None


def quantum_input(prefix: str, current: Optional[Quantum] = None) -> Optional[Quantum]:
    modes = [QUANTUM_TIMER, QUANTUM_COUNT]
    mode = st.selectbox("Mode", modes, index=modes.index(current.mode) if current else 0, key=f"{prefix}_qmode")
    if mode == QUANTUM_TIMER:
        default = max(1, round(current.total_seconds / 60)) if current and current.mode == QUANTUM_TIMER else 30
        minutes = st.number_input("Target (minutes)", min_value=1, value=default, step=5, key=f"{prefix}_qmin")
        return edit_quantum(current, QUANTUM_TIMER, int(minutes) * 60)
    counted = current is not None and current.mode == QUANTUM_COUNT
    value = st.number_input("Target count", min_value=1, value=max(1, current.count_value) if counted else 10, step=1, key=f"{prefix}_qcnt")
    unit = st.text_input("Unit", value=current.count_unit if counted else "", key=f"{prefix}_qunit")
    return edit_quantum(current, QUANTUM_COUNT, int(value), unit)


def tasks_df(tasks: List[Task]) -> pd.DataFrame:
    rows = []
    for t in tasks:
        rows.append(
            {
                "id": t.id,
                "title": t.title,
                "anchor": t.anchor_date or "",
                "type": t.type,
                "repeating": t.is_repeating(),
                "tag": t.tag or t.tag_label or "",
                "subtasks": len(t.subtasks),
            }
        )
    if not rows:
        return pd.DataFrame(columns=["id", "title", "anchor", "type", "repeating", "tag", "subtasks"])
    return pd.DataFrame(rows).sort_values(["anchor", "title"])


# -----------------------------
# Today
# -----------------------------

if page == "Today":
    selected = st.date_input("Day", value=date.today())
    key = date_key(selected)

    options = tag_options(data.tasks)
    current_filter = resolve_tag_filter(data.settings.selected_tag_filter, data.tasks)
    filter_keys = [ALL_TAGS] + [o.key for o in options]
    labels = {ALL_TAGS: "All", **{o.key: o.label for o in options}}
    tag_filter = st.radio(
        "Tag",
        filter_keys,
        index=filter_keys.index(current_filter) if current_filter in filter_keys else 0,
        format_func=lambda k: labels.get(k, k),
        horizontal=True,
    )
    if tag_filter != data.settings.selected_tag_filter:
        data.settings.selected_tag_filter = tag_filter
        save(data)

    views = visible_tasks(data.tasks, selected, tag_filter)
    if not views:
        st.info("Nothing scheduled for this day.")
    elif is_day_complete(data.tasks, selected):
        st.success("All done for the day.")

    for v in views:
        t = v.task
        with st.container(border=True):
            c1, c2 = st.columns([3, 2])
            with c1:
                title = f"**{t.title}**" + (f"  ·  {v.tag_label}" if v.tag_label else "")
                st.markdown(title)
                if v.total_subtasks:
                    st.caption(f"{v.completed_subtasks}/{v.total_subtasks} subtasks")
                for sub, done in zip(t.subtasks, v.subtasks_done):
                    if st.checkbox(sub.title, value=done, key=f"sub_{t.id}_{sub.id}_{key}") != done:
                        commit(data, toggle_task_subtask(t, sub.id, key), "subtask_completion_toggled",
                               subtaskId=sub.id, dateKey=key, completed=not done)
                        st.rerun()
            with c2:
                if t.is_quantum():
                    st.progress(v.progress_percent, text=v.progress_label or "")
                    step = st.number_input(
                        "Step (minutes)" if t.quantum.mode == QUANTUM_TIMER else "Step",
                        min_value=1, value=5 if t.quantum.mode == QUANTUM_TIMER else 1,
                        key=f"step_{t.id}",
                    )
                    delta = int(step) * (60 if t.quantum.mode == QUANTUM_TIMER else 1)
                    b1, b2 = st.columns(2)
                    if b1.button("−", key=f"minus_{t.id}"):
                        commit(data, advance_progress(t, key, -delta), "quantum_adjusted", dateKey=key, delta=-delta)
                        st.rerun()
                    if b2.button("+", key=f"plus_{t.id}"):
                        commit(data, advance_progress(t, key, delta), "quantum_adjusted", dateKey=key, delta=delta)
                        st.rerun()
                elif st.checkbox("Done", value=v.completed, key=f"done_{t.id}_{key}") != v.completed:
                    commit(data, toggle_task_completion(t, key), "task_completion_toggled",
                           dateKey=key, completed=not v.completed)
                    st.rerun()

# -----------------------------
# Tasks
# -----------------------------

elif page == "Tasks":
    st.subheader("All tasks")
    st.dataframe(tasks_df(data.tasks), use_container_width=True, hide_index=True)

    st.divider()
    st.subheader("Add task")
    title = st.text_input("Title", value="", key="add_title")
    anchor = st.date_input("Start date", value=date.today(), key="add_anchor")
    is_quantum = st.checkbox("Track time / count", value=False, key="add_isq")
    quantum = quantum_input("add") if is_quantum else None
    repeat = repeat_input("add")
    time_value = time_input("add")
    tag_text = st.text_input("Tag (optional)", value="", key="add_tag")
    reminder = st.selectbox("Reminder", list(REMINDER_OFFSETS), key="add_rem")
    subtasks_text = st.text_area("Subtasks (one per line)", value="", key="add_subs")
    if st.button("Add task"):
        task = new_task(
            data.tasks,
            title,
            anchor,
            repeat=repeat,
            subtasks=subtasks_text.splitlines(),
            task_type=TASK_TYPE_QUANTUM if quantum else TASK_TYPE_CHECKBOX,
            quantum=quantum,
            tag_label=tag_text.strip() or None,
            time=time_value,
            reminder=reminder,
        )
        data.tasks = data.tasks + [task]
        data.history = append_history(data.history, "task_created", {"taskId": task.id, "title": task.title, "dateKey": task.anchor_date})
        save(data)
        st.success("Task added.")
        st.rerun()

    st.divider()
    st.subheader("Edit / delete")
    if data.tasks:
        tid = st.selectbox("Select task", [t.id for t in data.tasks], format_func=lambda i: find_task(data.tasks, i).title)
        task = find_task(data.tasks, tid)
        prefix = f"upd_{tid}"
        new_title = st.text_input("Title", value=task.title, key=f"{prefix}_title")
        new_anchor = st.date_input("Start date", value=normalize_date(task.anchor_date) or date.today(), key=f"{prefix}_anchor")
        upd_quantum = quantum_input(prefix, task.quantum) if task.is_quantum() else None
        upd_repeat = repeat_input(prefix, task.repeat)
        upd_time = time_input(prefix, task.time)
        if task.time and upd_time.sort_minutes() is not None and upd_time.sort_minutes() == task.time.sort_minutes():
            upd_time = task.time
        current_tag = task.tag_label or task.tag or ""
        upd_tag = st.text_input("Tag (optional)", value=current_tag, key=f"{prefix}_tag")
        reminders = list(REMINDER_OFFSETS)
        upd_reminder = st.selectbox(
            "Reminder", reminders,
            index=reminders.index(task.reminder) if task.reminder in reminders else 0,
            key=f"{prefix}_rem",
        )
        subs = st.text_area("Subtasks", value="\n".join(s.title for s in task.subtasks), key=f"{prefix}_subs")
        when = next_reminder_at(task, datetime.now())
        if when:
            st.caption(f"Next reminder: {when:%Y-%m-%d %H:%M}")

        c1, c2 = st.columns(2)
        with c1:
            if st.button("Save changes"):
                fields = {"repeat": upd_repeat, "time": upd_time, "reminder": upd_reminder}
                if upd_tag.strip() != current_tag:
                    fields.update(tag=None, tag_label=upd_tag.strip() or None)
                updated = update_task(
                    data.tasks, task, title=new_title, anchor=new_anchor,
                    subtasks=subs.splitlines(), quantum=upd_quantum, **fields,
                )
                commit(data, updated, "task_updated", title=updated.title)
                st.success("Saved.")
                st.rerun()
        with c2:
            if st.button("Delete task"):
                data.tasks = [t for t in data.tasks if t.id != tid]
                data.history = append_history(data.history, "task_deleted", {"taskId": tid})
                save(data)
                st.success("Deleted.")
                st.rerun()
    else:
        st.info("No tasks yet.")

# -----------------------------
# Calendar
# -----------------------------

elif page == "Calendar":
    today = date.today()
    stats = profile_stats(data.tasks, data.history, today)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Days tracked", stats.total_days)
    c2.metric("Habits", stats.committed_habits)
    c3.metric("Current streak", stats.current_streak)
    c4.metric("Best streak", stats.best_streak)

    month = st.date_input("Month", value=today.replace(day=1))
    st.dataframe(month_summary(data.tasks, month.year, month.month), use_container_width=True, hide_index=True)

    st.subheader("Day report")
    day = st.date_input("Day", value=today, key="report_day")
    st.dataframe(day_report(data.tasks, day), use_container_width=True, hide_index=True)

# -----------------------------
# History
# -----------------------------

elif page == "History":
    st.subheader("Recent activity")
    if not data.history:
        st.info("No history yet.")
    else:
        st.dataframe(
            pd.DataFrame(
                [{"time": h.timestamp, "type": h.type, "details": h.details} for h in data.history]
            ),
            use_container_width=True,
            hide_index=True,
        )
