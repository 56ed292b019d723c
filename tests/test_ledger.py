from datetime import date

from conftest import make_task
from habitlite.ledger import (
    completed_count,
    completion_stats,
    find_task,
    is_day_complete,
    is_subtask_completed,
    is_task_completed,
    replace_task,
    set_task_completion,
    toggle_subtask_completion,
    toggle_task_completion,
    toggle_task_subtask,
)
from habitlite.models import RepeatRule, Subtask


def test_task_completion_read():
    task = make_task(completed_dates={"2024-01-02": True})
    assert is_task_completed(task, "2024-01-02")
    assert is_task_completed(task, date(2024, 1, 2))
    assert not is_task_completed(task, "2024-01-03")
    assert not is_task_completed(task, "nonsense")


def test_toggle_twice_restores_original_state():
    task = make_task(completed_dates={"2024-01-01": True})
    once = toggle_task_completion(task, "2024-01-05")
    twice = toggle_task_completion(once, "2024-01-05")
    assert once.completed_dates == {"2024-01-01": True, "2024-01-05": True}
    assert twice.completed_dates == task.completed_dates


def test_toggle_does_not_mutate_input_or_other_keys():
    task = make_task(completed_dates={"2024-01-01": True, "2024-01-02": True})
    updated = toggle_task_completion(task, "2024-01-02")
    assert updated.completed_dates == {"2024-01-01": True}
    assert task.completed_dates == {"2024-01-01": True, "2024-01-02": True}
    assert updated is not task


def test_toggle_with_bad_date_is_a_no_op():
    task = make_task()
    assert toggle_task_completion(task, "???") is task


def test_set_task_completion():
    task = make_task()
    done = set_task_completion(task, "2024-01-01", True)
    assert done.completed_dates == {"2024-01-01": True}
    assert set_task_completion(done, "2024-01-01", True) is done
    assert set_task_completion(done, "2024-01-01", False).completed_dates == {}


def test_subtask_date_scoped_read_has_no_legacy_fallback():
    sub = Subtask(id="s", title="x", completed_dates={"2024-06-01": True}, completed=True)
    assert is_subtask_completed(sub, "2024-06-01")
    assert not is_subtask_completed(sub, "2024-06-02")
    assert is_subtask_completed(sub)


def test_subtask_explicit_false_entry():
    sub = Subtask(id="s", title="x", completed_dates={"2024-06-01": False})
    assert not is_subtask_completed(sub, "2024-06-01")
    toggled = toggle_subtask_completion(sub, "2024-06-01")
    assert toggled.completed_dates == {"2024-06-01": True}
    assert toggle_subtask_completion(toggled, "2024-06-01").completed_dates == {}


def test_toggle_task_subtask_keeps_order(checklist_task):
    updated = toggle_task_subtask(checklist_task, "s2", "2024-01-02")
    assert [s.id for s in updated.subtasks] == ["s1", "s2", "s3"]
    assert updated.subtasks[1].completed_dates == {"2024-01-02": True}
    assert checklist_task.subtasks[1].completed_dates == {"2024-01-02": False}
    assert toggle_task_subtask(checklist_task, "missing", "2024-01-02") is checklist_task


def test_completion_stats(checklist_task):
    stats = completion_stats(checklist_task, "2024-01-02")
    assert (stats.total, stats.completed) == (3, 1)
    assert completion_stats(make_task(), "2024-01-02").total == 0


def test_day_complete_requires_scheduled_tasks():
    daily = RepeatRule(option="daily")
    a = make_task("a", repeat=daily, completed_dates={"2024-01-03": True})
    b = make_task("b", repeat=daily)
    one_off = make_task("c", anchor="2024-02-01")

    assert not is_day_complete([], "2024-01-03")
    assert not is_day_complete([one_off], "2024-01-03")
    assert not is_day_complete([a, b], "2024-01-03")
    assert is_day_complete([a, b, one_off], "2024-01-03") is False
    assert is_day_complete([a, one_off], "2024-01-03")
    assert completed_count([a, b], "2024-01-03") == 1


def test_replace_by_id():
    a, b = make_task("a"), make_task("b")
    b2 = toggle_task_completion(b, "2024-01-01")
    tasks = replace_task([a, b], b2)
    assert tasks[1] is b2 and tasks[0] is a
    assert find_task(tasks, "b") is b2
    assert find_task(tasks, "zzz") is None
