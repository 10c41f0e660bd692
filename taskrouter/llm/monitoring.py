"""Performance monitoring - execution history and evaluation aggregates.

The PerformanceMonitor is the feedback half of routing. It keeps:
- A fixed-capacity ring buffer of ExecutionRecords (oldest evicted first)
- Evaluation buckets keyed by (model_id, category)

Every new evaluation recomputes its bucket's mean from the full bucket
contents (never an incremental drift) and pushes that mean into the
ModelSelector, so the next selection sees it.
"""

from __future__ import annotations

from collections import deque
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from taskrouter.llm.types import ExecutionRecord, ModelEvaluation, TaskCategory

if TYPE_CHECKING:
    from taskrouter.llm.selection import ModelSelector

log = structlog.get_logger(__name__)

DEFAULT_EXECUTION_CAPACITY = 1000


class PerformanceMonitor:
    """Records execution outcomes and evaluations, aggregates them per
    model and category, and feeds the aggregates back into selection.

    Args:
        selector: Selector receiving recomputed bucket means
        execution_capacity: Ring buffer size for execution records
        evaluation_capacity: Optional per-bucket bound; None keeps every
            evaluation for the process lifetime
    """

    def __init__(
        self,
        selector: ModelSelector,
        execution_capacity: int = DEFAULT_EXECUTION_CAPACITY,
        evaluation_capacity: int | None = None,
    ) -> None:
        if execution_capacity < 1:
            raise ValueError("execution_capacity must be positive")
        if evaluation_capacity is not None and evaluation_capacity < 1:
            raise ValueError("evaluation_capacity must be positive")

        self._selector = selector
        self._execution_capacity = execution_capacity
        self._executions: deque[ExecutionRecord] = deque(maxlen=execution_capacity)
        self._evaluation_capacity = evaluation_capacity
        self._evaluations: dict[tuple[str, TaskCategory], deque[ModelEvaluation]] = {}

        log.info(
            "performance_monitor.initialized",
            execution_capacity=execution_capacity,
            evaluation_capacity=evaluation_capacity,
        )

    @property
    def execution_capacity(self) -> int:
        return self._execution_capacity

    # ---------------------------------------------------------------- #
    # Executions
    # ---------------------------------------------------------------- #

    def record_execution(self, record: ExecutionRecord) -> None:
        """Append an execution record, evicting the oldest at capacity."""
        self._executions.append(record)
        log.debug(
            "performance_monitor.execution_recorded",
            model_id=record.model_id,
            task_id=record.task_id,
            success=record.success,
            duration_ms=round(record.duration_ms, 2),
        )

    def get_recent_executions(self, limit: int = 100) -> list[ExecutionRecord]:
        """Most recent ``limit`` records, ordered oldest to newest."""
        if limit <= 0:
            return []
        history = list(self._executions)
        return history[-limit:]

    def execution_summary(self, limit: int | None = None) -> dict[str, Any]:
        """Count, success rate and mean duration over recent executions."""
        records = list(self._executions) if limit is None else self.get_recent_executions(limit)
        if not records:
            return {"count": 0, "success_rate": 0.0, "failures": 0, "avg_duration_ms": 0.0}

        successes = sum(1 for r in records if r.success)
        return {
            "count": len(records),
            "success_rate": round(successes / len(records), 4),
            "failures": len(records) - successes,
            "avg_duration_ms": round(sum(r.duration_ms for r in records) / len(records), 2),
        }

    # ---------------------------------------------------------------- #
    # Evaluations
    # ---------------------------------------------------------------- #

    def record_evaluation(
        self,
        model_id: str,
        category: TaskCategory,
        evaluated_at: datetime | None = None,
        **partial: float,
    ) -> ModelEvaluation:
        """Record an evaluation and push the bucket mean into selection.

        Missing fields count as 0.0, matching a partially filled report.

        Returns:
            The recomputed mean for the (model_id, category) bucket
        """
        category = TaskCategory(category)
        evaluation = ModelEvaluation(evaluated_at=evaluated_at or datetime.now(UTC), **partial)

        key = (model_id, category)
        bucket = self._evaluations.get(key)
        if bucket is None:
            bucket = deque(maxlen=self._evaluation_capacity)
            self._evaluations[key] = bucket
        bucket.append(evaluation)

        aggregated = ModelEvaluation.mean(list(bucket))
        self._selector.update_metrics(model_id, **aggregated.as_metrics())

        log.info(
            "performance_monitor.evaluation_recorded",
            model_id=model_id,
            category=category.value,
            bucket_size=len(bucket),
            accuracy=round(aggregated.accuracy, 4),
            quality_score=round(aggregated.quality_score, 4),
        )
        return aggregated

    def evaluation_count(self, model_id: str, category: TaskCategory) -> int:
        return len(self._evaluations.get((model_id, TaskCategory(category)), ()))

    def get_evaluations(self, model_id: str, category: TaskCategory) -> list[ModelEvaluation]:
        """Stored evaluations for one bucket, oldest first."""
        return list(self._evaluations.get((model_id, TaskCategory(category)), ()))

    def get_model_performance(self, model_id: str) -> ModelEvaluation | None:
        """Mean of the per-category means for one model.

        Returns:
            Aggregated evaluation, or None if the model has no evaluations
        """
        category_means = [
            ModelEvaluation.mean(list(bucket))
            for (bucket_model, _), bucket in self._evaluations.items()
            if bucket_model == model_id
        ]
        if not category_means:
            return None
        return ModelEvaluation.mean(category_means)

    def get_task_performance_comparison(
        self,
        category: TaskCategory,
    ) -> dict[str, ModelEvaluation]:
        """Per-model mean for every model evaluated on a category."""
        category = TaskCategory(category)
        return {
            model_id: ModelEvaluation.mean(list(bucket))
            for (model_id, bucket_category), bucket in self._evaluations.items()
            if bucket_category == category
        }

    def evaluated_models(self) -> list[str]:
        """Identities with at least one evaluation, in first-seen order."""
        return list(dict.fromkeys(model_id for model_id, _ in self._evaluations))
