"""Tests for PerformanceMonitor history and evaluation aggregation."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from taskrouter.llm.monitoring import PerformanceMonitor
from taskrouter.llm.types import ExecutionRecord, ModelEvaluation, TaskCategory


def _record(index: int, success: bool = True, duration: float = 10.0) -> ExecutionRecord:
    start = 1_000.0 * index
    return ExecutionRecord(
        model_id="llama3-8b",
        task_id=f"task-{index}",
        start_time=start,
        end_time=start + duration,
        success=success,
    )


# ------------------------------------------------------------------ #
# Execution history
# ------------------------------------------------------------------ #


def test_ring_buffer_evicts_oldest(monitor):
    """Capacity 100, 150 records: only the newest 100 are kept, in order."""
    for i in range(150):
        monitor.record_execution(_record(i))

    history = monitor.get_recent_executions(500)

    assert len(history) == 100
    assert history[0].task_id == "task-50"
    assert history[-1].task_id == "task-149"


def test_recent_executions_limit(monitor):
    for i in range(10):
        monitor.record_execution(_record(i))

    recent = monitor.get_recent_executions(3)

    assert [r.task_id for r in recent] == ["task-7", "task-8", "task-9"]
    assert monitor.get_recent_executions(0) == []


def test_execution_summary(monitor):
    monitor.record_execution(_record(1, duration=10))
    monitor.record_execution(_record(2, duration=30))
    monitor.record_execution(_record(3, success=False, duration=20))

    summary = monitor.execution_summary()

    assert summary["count"] == 3
    assert summary["failures"] == 1
    assert summary["success_rate"] == pytest.approx(0.6667)
    assert summary["avg_duration_ms"] == pytest.approx(20.0)


def test_execution_summary_empty(monitor):
    assert monitor.execution_summary() == {
        "count": 0,
        "success_rate": 0.0,
        "failures": 0,
        "avg_duration_ms": 0.0,
    }


def test_invalid_capacity_rejected(selector):
    with pytest.raises(ValueError, match="execution_capacity must be positive"):
        PerformanceMonitor(selector, execution_capacity=0)
    with pytest.raises(ValueError, match="evaluation_capacity must be positive"):
        PerformanceMonitor(selector, evaluation_capacity=0)


# ------------------------------------------------------------------ #
# Evaluations
# ------------------------------------------------------------------ #


def test_evaluation_mean_recomputed_and_pushed(monitor, selector):
    monitor.record_evaluation("llama3-8b", TaskCategory.CLASSIFICATION, accuracy=0.6, latency=200)
    aggregated = monitor.record_evaluation(
        "llama3-8b", TaskCategory.CLASSIFICATION, accuracy=1.0, latency=100
    )

    assert aggregated.accuracy == pytest.approx(0.8)
    assert aggregated.latency == pytest.approx(150)
    pushed = selector.get_metrics("llama3-8b")
    assert pushed.accuracy == pytest.approx(0.8)
    assert pushed.latency == pytest.approx(150)


def test_missing_fields_count_as_zero(monitor):
    aggregated = monitor.record_evaluation(
        "mistral-7b", TaskCategory.SUMMARIZATION, accuracy=0.9
    )

    assert aggregated.quality_score == 0.0
    assert aggregated.user_satisfaction == 0.0


def test_scores_clamped_to_unit_range(monitor):
    aggregated = monitor.record_evaluation(
        "mistral-7b", TaskCategory.SUMMARIZATION, accuracy=1.7, quality_score=-2
    )

    assert aggregated.accuracy == 1.0
    assert aggregated.quality_score == 0.0


def test_buckets_separate_categories(monitor):
    monitor.record_evaluation("llama3-8b", TaskCategory.CLASSIFICATION, accuracy=1.0)
    monitor.record_evaluation("llama3-8b", TaskCategory.QUESTION_ANSWERING, accuracy=0.5)
    monitor.record_evaluation("llama3-8b", TaskCategory.QUESTION_ANSWERING, accuracy=0.3)

    assert monitor.evaluation_count("llama3-8b", TaskCategory.CLASSIFICATION) == 1
    assert monitor.evaluation_count("llama3-8b", TaskCategory.QUESTION_ANSWERING) == 2
    # mean of category means: (1.0 + 0.4) / 2
    assert monitor.get_model_performance("llama3-8b").accuracy == pytest.approx(0.7)


def test_model_ids_with_dashes_do_not_collide(monitor):
    monitor.record_evaluation("llama3-8b", TaskCategory.REASONING, accuracy=0.2)
    monitor.record_evaluation("llama3", TaskCategory.REASONING, accuracy=0.9)

    assert monitor.get_model_performance("llama3-8b").accuracy == pytest.approx(0.2)
    assert monitor.get_model_performance("llama3").accuracy == pytest.approx(0.9)


def test_model_performance_unknown_is_none(monitor):
    assert monitor.get_model_performance("never-seen") is None


def test_task_performance_comparison(monitor):
    monitor.record_evaluation("llama3-8b", TaskCategory.CLASSIFICATION, accuracy=0.9)
    monitor.record_evaluation("mistral-7b", TaskCategory.CLASSIFICATION, accuracy=0.7)
    monitor.record_evaluation("mistral-7b", TaskCategory.SUMMARIZATION, accuracy=0.1)

    comparison = monitor.get_task_performance_comparison(TaskCategory.CLASSIFICATION)

    assert set(comparison) == {"llama3-8b", "mistral-7b"}
    assert comparison["mistral-7b"].accuracy == pytest.approx(0.7)
    assert monitor.evaluated_models() == ["llama3-8b", "mistral-7b"]


def test_evaluation_capacity_bounds_bucket(selector):
    monitor = PerformanceMonitor(selector, evaluation_capacity=2)
    for accuracy in (0.0, 0.6, 1.0):
        aggregated = monitor.record_evaluation(
            "llama3-8b", TaskCategory.CLASSIFICATION, accuracy=accuracy
        )

    assert monitor.evaluation_count("llama3-8b", TaskCategory.CLASSIFICATION) == 2
    assert aggregated.accuracy == pytest.approx(0.8)


def test_evaluation_timestamp_kept(monitor):
    when = datetime(2024, 1, 1, tzinfo=UTC)
    monitor.record_evaluation(
        "llama3-8b", TaskCategory.CLASSIFICATION, evaluated_at=when, accuracy=0.5
    )

    stored = monitor.get_evaluations("llama3-8b", TaskCategory.CLASSIFICATION)

    assert len(stored) == 1
    assert stored[0].evaluated_at == when
    assert stored[0].accuracy == pytest.approx(0.5)


def test_evaluation_timestamp_defaults_to_now(monitor):
    monitor.record_evaluation("llama3-8b", TaskCategory.CLASSIFICATION, accuracy=0.5)

    stored = monitor.get_evaluations("llama3-8b", TaskCategory.CLASSIFICATION)

    assert stored[0].evaluated_at is not None
    assert stored[0].evaluated_at.tzinfo is not None
    assert monitor.get_evaluations("llama3-8b", TaskCategory.REASONING) == []


def test_repeated_identical_evaluation_leaves_performance_unchanged(monitor):
    scores = {
        "accuracy": 0.82,
        "latency": 140.0,
        "quality_score": 0.67,
        "resource_efficiency": 0.55,
        "user_satisfaction": 0.91,
    }
    monitor.record_evaluation("mixtral-8x7b", TaskCategory.REASONING, **scores)
    once = monitor.get_model_performance("mixtral-8x7b").as_metrics()

    monitor.record_evaluation("mixtral-8x7b", TaskCategory.REASONING, **scores)
    twice = monitor.get_model_performance("mixtral-8x7b").as_metrics()

    assert twice == pytest.approx(once)
    assert twice == pytest.approx(scores)


def test_mean_of_empty_list_raises():
    with pytest.raises(ValueError, match="empty evaluation list"):
        ModelEvaluation.mean([])
