"""Model selection - multi-factor scoring over the registry.

The selector ranks registry entries for a task based on:
- Declared capability for the task category (hard filter)
- An optional resource ceiling (advisory: falls back to the smallest
  capable model when nothing fits)
- Task complexity versus model compute size
- Observed performance metrics pushed in by execution and monitoring
- Domain affinity between context tags and the model identity

Score composition (base 1.0):
- +0.5 complexity > 0.7 and compute_units > 4
- +0.3 complexity < 0.3 and compute_units <= 2
- +0.2 accuracy > 0.8              (metrics known)
- +0.2 latency < 100 ms            (metrics known)
- +0.3 question answering and quality_score > 0.7 (metrics known)
- +0.2 domain affinity
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from taskrouter.llm.types import (
    ModelDescriptor,
    ModelEvaluation,
    ResourceCeiling,
    TaskCategory,
    clamp_unit,
)

if TYPE_CHECKING:
    from taskrouter.llm.registry import ModelRegistry

log = structlog.get_logger(__name__)

BASE_SCORE = 1.0
HIGH_COMPLEXITY_THRESHOLD = 0.7
LOW_COMPLEXITY_THRESHOLD = 0.3
LARGE_MODEL_COMPUTE = 4
SMALL_MODEL_COMPUTE = 2
FAST_LATENCY_MS = 100.0


@dataclass(frozen=True)
class ScoredModel:
    descriptor: ModelDescriptor
    score: float


@dataclass(frozen=True)
class SelectionOutcome:
    """Selection result with the reasoning flags callers may need.

    Attributes:
        descriptor: Chosen model, or None when no model supports the category
        score: Score of the chosen model (0.0 for a fallback pick)
        ceiling_satisfied: False when the ceiling excluded every capable model
        fallback_used: True when the lowest-resource fallback was returned
    """

    descriptor: ModelDescriptor | None
    score: float = 0.0
    ceiling_satisfied: bool = True
    fallback_used: bool = False


class ModelSelector:
    """Scores and ranks registry entries for incoming task requests.

    Holds the identity-level metrics store. Category-level aggregation lives
    in PerformanceMonitor, which pushes its recomputed means in through
    update_metrics().
    """

    def __init__(
        self,
        registry: ModelRegistry,
        domain_affinity: Mapping[str, str] | None = None,
    ) -> None:
        self._registry = registry
        self._metrics: dict[str, ModelEvaluation] = {}
        self._domain_affinity = {
            tag.lower(): fragment.lower()
            for tag, fragment in (domain_affinity or {}).items()
        }

    # ---------------------------------------------------------------- #
    # Selection
    # ---------------------------------------------------------------- #

    def select(
        self,
        category: TaskCategory,
        complexity: float = 0.5,
        domain_context: Iterable[str] = (),
        ceiling: ResourceCeiling | None = None,
    ) -> ModelDescriptor | None:
        """Select the best model for a task.

        Returns:
            The highest-scoring capable descriptor, the lowest-resource
            capable descriptor when the ceiling excludes every candidate,
            or None when no registered model supports the category.
        """
        return self.select_with_details(category, complexity, domain_context, ceiling).descriptor

    def select_with_details(
        self,
        category: TaskCategory,
        complexity: float = 0.5,
        domain_context: Iterable[str] = (),
        ceiling: ResourceCeiling | None = None,
    ) -> SelectionOutcome:
        """Select the best model and report whether the ceiling held."""
        category = TaskCategory(category)
        complexity = clamp_unit(complexity)
        tags = tuple(domain_context)

        capable = self._registry.find_by_capability(category)
        if not capable:
            log.info("model_selection.no_capable_model", category=category.value)
            return SelectionOutcome(descriptor=None)

        eligible = capable
        if ceiling is not None:
            eligible = [d for d in capable if ceiling.admits(d.resources)]
            if not eligible:
                fallback = self._fallback(capable)
                log.warning(
                    "model_selection.ceiling_unsatisfiable",
                    category=category.value,
                    max_memory=ceiling.max_memory,
                    max_compute_units=ceiling.max_compute_units,
                    fallback_model=fallback.model_id,
                )
                return SelectionOutcome(
                    descriptor=fallback,
                    ceiling_satisfied=False,
                    fallback_used=True,
                )

        first = eligible[0]
        best = ScoredModel(first, self.score(first, category, complexity, tags))
        for descriptor in eligible[1:]:
            score = self.score(descriptor, category, complexity, tags)
            if score > best.score:
                best = ScoredModel(descriptor, score)

        log.info(
            "model_selection.selected",
            category=category.value,
            complexity=complexity,
            model_id=best.descriptor.model_id,
            score=best.score,
            candidates=len(eligible),
        )
        return SelectionOutcome(descriptor=best.descriptor, score=best.score)

    def rank(
        self,
        category: TaskCategory,
        complexity: float = 0.5,
        domain_context: Iterable[str] = (),
    ) -> list[ScoredModel]:
        """Score every capable model, best first (stable on ties)."""
        category = TaskCategory(category)
        complexity = clamp_unit(complexity)
        tags = tuple(domain_context)
        scored = [
            ScoredModel(d, self.score(d, category, complexity, tags))
            for d in self._registry.find_by_capability(category)
        ]
        return sorted(scored, key=lambda s: s.score, reverse=True)

    def score(
        self,
        descriptor: ModelDescriptor,
        category: TaskCategory,
        complexity: float,
        domain_context: tuple[str, ...],
    ) -> float:
        """Compute the selection score of one model for one request."""
        score = BASE_SCORE
        compute = descriptor.resources.compute_units

        if complexity > HIGH_COMPLEXITY_THRESHOLD and compute > LARGE_MODEL_COMPUTE:
            score += 0.5
        elif complexity < LOW_COMPLEXITY_THRESHOLD and compute <= SMALL_MODEL_COMPUTE:
            score += 0.3

        metrics = self._metrics.get(descriptor.model_id)
        if metrics is not None:
            if metrics.accuracy > 0.8:
                score += 0.2
            if metrics.latency < FAST_LATENCY_MS:
                score += 0.2
            if category == TaskCategory.QUESTION_ANSWERING and metrics.quality_score > 0.7:
                score += 0.3

        if self._has_domain_affinity(descriptor.model_id, domain_context):
            score += 0.2

        return score

    def _has_domain_affinity(self, model_id: str, domain_context: tuple[str, ...]) -> bool:
        # Substring heuristic; a learned affinity table would replace this.
        identity = model_id.lower()
        for tag in domain_context:
            tag = tag.lower()
            if not tag:
                continue
            fragment = self._domain_affinity.get(tag)
            if fragment and fragment in identity:
                return True
            if tag in identity:
                return True
        return False

    @staticmethod
    def _fallback(candidates: list[ModelDescriptor]) -> ModelDescriptor:
        """Lowest memory first, then lowest compute; first-found on ties."""
        return min(
            candidates,
            key=lambda d: (d.resources.memory, d.resources.compute_units),
        )

    # ---------------------------------------------------------------- #
    # Metrics store
    # ---------------------------------------------------------------- #

    def update_metrics(self, model_id: str, **partial: float) -> ModelEvaluation:
        """Merge metric fields into a model's identity-level metrics.

        Fields not supplied keep their previous value (zero initially).

        Raises:
            ValueError: If an unknown metric field is supplied
        """
        unknown = set(partial) - set(ModelEvaluation.SCORE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown metric fields: {sorted(unknown)}")

        current = self._metrics.get(model_id, ModelEvaluation()).as_metrics()
        current.update(partial)
        updated = ModelEvaluation(**current)
        self._metrics[model_id] = updated
        log.debug("model_selection.metrics_updated", model_id=model_id, **partial)
        return updated

    def get_metrics(self, model_id: str) -> ModelEvaluation | None:
        return self._metrics.get(model_id)

    def all_metrics(self) -> dict[str, ModelEvaluation]:
        return dict(self._metrics)
