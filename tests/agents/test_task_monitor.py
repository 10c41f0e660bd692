"""Tests for TaskMonitor lifecycle records."""

from __future__ import annotations

import pytest

from taskrouter.agents.task_monitor import TASK_COMPLETED, TASK_STARTED, TaskMonitor
from taskrouter.agents.types import AgentTask, AgentType, TaskPriority, TaskStatus


def test_task_lifecycle(make_task):
    monitor = TaskMonitor()
    task = make_task(target_agent_types=[AgentType.ASSESSMENT])

    monitor.record_task_start(task)
    monitor.record_task_event(task.task_id, "ROUTED")
    monitor.record_task_completion(task.task_id, TaskStatus.COMPLETED, "done")

    record = monitor.get_task_record(task.task_id)
    assert record.status == TaskStatus.COMPLETED
    assert record.result == "done"
    assert record.target_agents == [AgentType.ASSESSMENT]
    assert [e.event for e in record.events] == [TASK_STARTED, "ROUTED", TASK_COMPLETED]
    assert record.duration_ms is not None and record.duration_ms >= 0


def test_event_details_default_to_event_name(make_task):
    monitor = TaskMonitor()
    monitor.record_task_start(make_task())
    monitor.record_task_event("task-1", "RETRIED")

    assert monitor.get_task_record("task-1").events[-1].details == "RETRIED"


def test_unknown_task_events_are_ignored():
    monitor = TaskMonitor()
    monitor.record_task_event("ghost", "ROUTED")
    monitor.record_task_completion("ghost", TaskStatus.FAILED)

    assert monitor.get_task_record("ghost") is None


def test_disabled_monitor_records_nothing(make_task):
    monitor = TaskMonitor(enabled=False)
    monitor.record_task_start(make_task())

    assert monitor.get_task_record("task-1") is None

    monitor.set_enabled(True)
    monitor.record_task_start(make_task())
    assert monitor.get_task_record("task-1") is not None


def test_records_by_user(make_task):
    monitor = TaskMonitor()
    monitor.record_task_start(make_task(task_id="a", user_id="alice"))
    monitor.record_task_start(make_task(task_id="b", user_id="bob"))
    monitor.record_task_start(make_task(task_id="c", user_id="alice"))

    assert [r.task_id for r in monitor.get_user_task_records("alice")] == ["a", "c"]


def test_open_record_has_no_duration(make_task):
    monitor = TaskMonitor()
    monitor.record_task_start(make_task())
    assert monitor.get_task_record("task-1").duration_ms is None


# ------------------------------------------------------------------ #
# AgentTask coercion
# ------------------------------------------------------------------ #


def test_agent_task_coerces_enums():
    task = AgentTask(
        task_id="t",
        user_id="u",
        task_type="ASSESSMENT_GENERATION",
        priority="CRITICAL",
        status="in_progress",
        target_agent_types=["ASSESSMENT"],
    )
    assert task.priority is TaskPriority.CRITICAL
    assert task.status is TaskStatus.IN_PROGRESS
    assert task.target_agent_types == [AgentType.ASSESSMENT]


@pytest.mark.parametrize("field", ["task_id", "task_type"])
def test_agent_task_requires_identity(field):
    kwargs = {"task_id": "t", "user_id": "u", "task_type": "X"}
    kwargs[field] = ""
    with pytest.raises(ValueError, match=f"{field} cannot be empty"):
        AgentTask(**kwargs)


def test_unknown_priority_rejected():
    with pytest.raises(ValueError):
        AgentTask(task_id="t", user_id="u", task_type="X", priority="urgent")


def test_max_records_evicts_oldest_started(make_task):
    monitor = TaskMonitor(max_records=2)
    for task_id in ("a", "b", "c"):
        monitor.record_task_start(make_task(task_id=task_id))

    assert monitor.get_task_record("a") is None
    assert monitor.get_task_record("b") is not None
    assert monitor.get_task_record("c") is not None


def test_restarted_task_counts_as_newest(make_task):
    monitor = TaskMonitor(max_records=2)
    monitor.record_task_start(make_task(task_id="a"))
    monitor.record_task_start(make_task(task_id="b"))
    monitor.record_task_start(make_task(task_id="a"))
    monitor.record_task_start(make_task(task_id="c"))

    assert monitor.get_task_record("b") is None
    assert monitor.get_task_record("a") is not None


def test_max_records_must_be_positive():
    with pytest.raises(ValueError, match="max_records must be positive"):
        TaskMonitor(max_records=0)
