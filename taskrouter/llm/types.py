"""Core value types shared by registry, selection, execution and monitoring.

Descriptors are immutable once built; requests, overlays and results are
per-call values. Score-like fields are clamped to [0, 1] on construction so
every downstream consumer can rely on the range.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import StrEnum
from typing import Any


class TaskCategory(StrEnum):
    """Kinds of work a model can declare support for."""

    TEXT_GENERATION = "text_generation"
    QUESTION_ANSWERING = "question_answering"
    CLASSIFICATION = "classification"
    SUMMARIZATION = "summarization"
    TRANSLATION = "translation"
    REASONING = "reasoning"
    CODE_GENERATION = "code_generation"
    CONTENT_CREATION = "content_creation"


def clamp_unit(value: float) -> float:
    """Clamp a score into the closed unit interval."""
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class ResourceRequirements:
    """Resources a model needs to serve a request.

    Attributes:
        memory: Memory units (GB for the built-in catalog)
        compute_units: Relative compute cost; drives simulated latency
    """

    memory: float
    compute_units: float

    def __post_init__(self) -> None:
        if self.memory < 0:
            raise ValueError("memory cannot be negative")
        if self.compute_units < 0:
            raise ValueError("compute_units cannot be negative")


@dataclass(frozen=True)
class ModelParameters:
    """Execution knobs passed to an inference backend."""

    temperature: float = 0.7
    max_tokens: int = 1024
    top_p: float = 0.9
    frequency_penalty: float | None = None
    presence_penalty: float | None = None

    def __post_init__(self) -> None:
        if self.max_tokens < 1:
            raise ValueError("max_tokens must be positive")
        if self.temperature < 0:
            raise ValueError("temperature cannot be negative")
        if not 0.0 < self.top_p <= 1.0:
            raise ValueError("top_p must be within (0, 1]")

    def merged(self, overrides: dict[str, Any] | None) -> ModelParameters:
        """Return a copy with caller overrides applied on top.

        Keys that are not parameter fields are rejected so typos do not
        silently disappear.
        """
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown model parameters: {sorted(unknown)}")
        return replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        """Non-null parameters, suitable for a backend call."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class ModelDescriptor:
    """Catalog entry describing an inference backend.

    Attributes:
        model_id: Registry key; re-registering the same id overwrites
        name: Human-readable display name
        provider: Name of the provider the model comes from
        capabilities: Task categories the model can serve
        resources: Memory and compute requirements
        default_parameters: Parameters used before any category overlay
        quantization: Optional quantization tag (e.g. "q4_K_M")
        context_length: Optional maximum context window in tokens
    """

    model_id: str
    name: str
    provider: str
    capabilities: frozenset[TaskCategory]
    resources: ResourceRequirements
    default_parameters: ModelParameters = field(default_factory=ModelParameters)
    quantization: str | None = None
    context_length: int | None = None

    def __post_init__(self) -> None:
        if not self.model_id:
            raise ValueError("model_id cannot be empty")
        if self.context_length is not None and self.context_length < 1:
            raise ValueError("context_length must be positive")
        object.__setattr__(
            self,
            "capabilities",
            frozenset(TaskCategory(c) for c in self.capabilities),
        )

    def supports(self, category: TaskCategory) -> bool:
        return category in self.capabilities


@dataclass(frozen=True)
class ResourceCeiling:
    """Caller-supplied upper bound on model resources.

    ``None`` on an axis means that axis is unconstrained.
    """

    max_memory: float | None = None
    max_compute_units: float | None = None

    def admits(self, resources: ResourceRequirements) -> bool:
        if self.max_memory is not None and resources.memory > self.max_memory:
            return False
        if (
            self.max_compute_units is not None
            and resources.compute_units > self.max_compute_units
        ):
            return False
        return True


@dataclass(frozen=True)
class TaskRequest:
    """A generic routing request produced from any upstream task."""

    category: TaskCategory
    complexity: float = 0.5
    domain_context: tuple[str, ...] = ()
    ceiling: ResourceCeiling | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", TaskCategory(self.category))
        object.__setattr__(self, "complexity", clamp_unit(self.complexity))
        object.__setattr__(self, "domain_context", tuple(self.domain_context))


@dataclass(frozen=True)
class ModelEvaluation:
    """Quality and performance measurement for a model on some category.

    Attributes:
        accuracy: Fraction of correct outputs (0.0-1.0)
        latency: Response latency in milliseconds
        quality_score: Output quality, F1-like (0.0-1.0)
        resource_efficiency: Output per resource spent (0.0-1.0)
        user_satisfaction: Satisfaction rating (0.0-1.0)
        evaluated_at: When the observation was taken (None for aggregates)
    """

    accuracy: float = 0.0
    latency: float = 0.0
    quality_score: float = 0.0
    resource_efficiency: float = 0.0
    user_satisfaction: float = 0.0
    evaluated_at: datetime | None = None

    SCORE_FIELDS = (
        "accuracy",
        "latency",
        "quality_score",
        "resource_efficiency",
        "user_satisfaction",
    )

    def __post_init__(self) -> None:
        for name in self.SCORE_FIELDS:
            if name != "latency":
                object.__setattr__(self, name, clamp_unit(getattr(self, name)))
        object.__setattr__(self, "latency", max(0.0, float(self.latency)))

    @classmethod
    def mean(cls, evaluations: list[ModelEvaluation]) -> ModelEvaluation:
        """Field-wise arithmetic mean; raises ValueError on an empty list."""
        if not evaluations:
            raise ValueError("Cannot average an empty evaluation list")
        count = len(evaluations)
        return cls(
            **{
                name: sum(getattr(e, name) for e in evaluations) / count
                for name in cls.SCORE_FIELDS
            }
        )

    def as_metrics(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in self.SCORE_FIELDS}


@dataclass(frozen=True)
class TokenCount:
    input: int
    output: int

    @property
    def total(self) -> int:
        return self.input + self.output


@dataclass(frozen=True)
class ExecutionRecord:
    """Observed outcome of a single model execution.

    Timestamps are epoch milliseconds, matching the execution timer.
    """

    model_id: str
    task_id: str
    start_time: float
    end_time: float
    input_tokens: int = 0
    output_tokens: int = 0
    success: bool = True
    error_message: str | None = None

    @property
    def duration_ms(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class ExecutionResult:
    """What execute_task hands back to its caller."""

    text: str
    model_id: str
    execution_time_ms: float
    token_count: TokenCount
    truncated: bool = False
