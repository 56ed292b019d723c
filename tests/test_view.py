from dataclasses import replace

import pytest

from conftest import at, make_task
from habitlite.models import RepeatRule, TaskTime, TimeOfDay
from habitlite.view import (
    ALL_TAGS,
    MAX_SORT_VALUE,
    resolve_tag_filter,
    tag_key,
    tag_label,
    tag_options,
    tag_token,
    time_sort_value,
    visible_tasks,
)


DAILY = RepeatRule(option="daily")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Saúde & Bem-estar", "saude_bem_estar"),
        ("  Deep   Work!! ", "deep_work"),
        ("__x__", "x"),
        ("Ñandú 2", "nandu_2"),
    ],
)
def test_tag_token(text, expected):
    assert tag_token(text) == expected


def test_tag_prefers_raw_tag():
    task = make_task(tag=" deep_work ", tag_label="Something else")
    assert tag_key(task) == "deep_work"
    assert tag_label(task) == "Something else"


def test_tag_label_only():
    task = make_task(tag_label="  Saúde Mental ")
    assert tag_key(task) == "saude_mental"
    assert tag_label(task) == "Saúde Mental"


def test_tag_only_rebuilds_label():
    task = make_task(tag="morning_routine")
    assert tag_label(task) == "Morning Routine"


@pytest.mark.parametrize("tag", ["none", "NO_TAG", "   ", None])
def test_rejected_tags(tag):
    assert tag_key(make_task(tag=tag)) is None
    assert tag_key(make_task(tag=tag, tag_label="No Tag")) is None
    assert tag_label(make_task(tag=tag, tag_label=" ")) is None


def test_tag_options_unique_in_first_seen_order():
    tasks = [
        make_task("a", tag_label="Health"),
        make_task("b", tag="work"),
        make_task("c", tag_label="health"),
        make_task("d"),
    ]
    options = tag_options(tasks)
    assert [(o.key, o.label) for o in options] == [("health", "Health"), ("work", "Work")]


def test_resolve_tag_filter():
    tasks = [make_task("a", tag="work")]
    assert resolve_tag_filter("work", tasks) == "work"
    assert resolve_tag_filter("gone", tasks) == ALL_TAGS
    assert resolve_tag_filter("gone", []) == "gone"
    assert resolve_tag_filter(None, tasks) == ALL_TAGS


def test_time_sort_value():
    assert time_sort_value(make_task(time=at(12, 15, "AM"))) == 15
    assert time_sort_value(make_task(time=at(12, 0, "PM"))) == 720
    assert time_sort_value(make_task(time=at(9, 30, "PM"))) == 21 * 60 + 30
    period = TaskTime(specified=True, mode="period", period_start=TimeOfDay(7, 0, "AM"), period_end=TimeOfDay(8, 0, "AM"))
    assert time_sort_value(make_task(time=period)) == 420
    assert time_sort_value(make_task(time=TaskTime(specified=False, point=TimeOfDay(7, 0, "AM")))) == MAX_SORT_VALUE
    assert time_sort_value(make_task()) == MAX_SORT_VALUE


def test_visible_tasks_ordering():
    nine = make_task("nine", repeat=DAILY, time=at(9, 0, "AM"))
    anytime = make_task("anytime", repeat=DAILY)
    half_eight = make_task("half_eight", repeat=DAILY, time=at(8, 30, "AM"))
    views = visible_tasks([nine, anytime, half_eight], "2024-01-05")
    assert [v.task.id for v in views] == ["half_eight", "nine", "anytime"]


def test_visible_tasks_stable_among_ties():
    tasks = [make_task(f"t{i}", repeat=DAILY) for i in range(5)]
    assert [v.task.id for v in visible_tasks(tasks, "2024-01-02")] == ["t0", "t1", "t2", "t3", "t4"]


def test_visible_tasks_filters_occurrence_and_tag():
    work = make_task("work", repeat=DAILY, tag="work")
    home = make_task("home", repeat=DAILY, tag_label="Home")
    later = make_task("later", anchor="2024-02-01", repeat=DAILY, tag="work")
    tasks = [work, home, later]

    assert {v.task.id for v in visible_tasks(tasks, "2024-01-05")} == {"work", "home"}
    assert [v.task.id for v in visible_tasks(tasks, "2024-01-05", "work")] == ["work"]
    assert [v.task.id for v in visible_tasks(tasks, "2024-01-05", "home")] == ["home"]
    assert visible_tasks(tasks, "2024-01-05", "gym") == []
    assert visible_tasks(tasks, "bad date") == []


@pytest.mark.parametrize("empty", [None, ""])
def test_visible_tasks_empty_filter_means_all(empty):
    tagged = make_task("tagged", repeat=DAILY, tag="work")
    plain = make_task("plain", repeat=DAILY)
    views = visible_tasks([tagged, plain], "2024-01-05", empty)
    assert [v.task.id for v in views] == ["tagged", "plain"]


def test_visible_tasks_annotations(checklist_task, timer_task):
    checklist_task = replace(checklist_task, completed_dates={"2024-01-02": True})
    views = {v.task.id: v for v in visible_tasks([checklist_task, timer_task], "2024-01-02")}

    check = views["check"]
    assert check.completed
    assert check.date_key == "2024-01-02"
    assert check.subtasks_done == (True, False, False)
    assert (check.total_subtasks, check.completed_subtasks) == (3, 1)
    assert check.progress is None and check.progress_label is None

    timer = views["timer"]
    assert not timer.completed
    assert timer.progress_percent == 0.0
    assert timer.progress_label == "0:00/0:30"


def test_visible_tasks_does_not_touch_sources(checklist_task):
    before = checklist_task.subtasks[0].completed_dates.copy()
    views = visible_tasks([checklist_task], "2024-01-03")
    assert views[0].task is checklist_task
    assert checklist_task.subtasks[0].completed_dates == before
