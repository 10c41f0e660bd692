"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables prefixed with
``TASKROUTER_`` (or a .env file in dev). Components never read the
environment themselves; they receive a Settings instance from the runtime
builder.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEV = "dev"
    PROD = "prod"
    TEST = "test"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TASKROUTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Application
    # ------------------------------------------------------------------ #
    environment: Environment = Environment.DEV
    debug: bool = False

    # ------------------------------------------------------------------ #
    # Logging
    # ------------------------------------------------------------------ #
    log_level: str = Field(
        default="INFO",
        description="Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON (production) instead of console output",
    )

    # ------------------------------------------------------------------ #
    # Performance Monitoring
    # ------------------------------------------------------------------ #
    execution_history_capacity: int = Field(
        default=1000,
        ge=1,
        description="Maximum execution records kept in the ring buffer",
    )
    evaluation_history_capacity: int | None = Field(
        default=None,
        ge=1,
        description=(
            "Maximum evaluations kept per (model, category) bucket. "
            "Leave unset to keep every evaluation for the process lifetime."
        ),
    )

    # ------------------------------------------------------------------ #
    # Model Selection & Execution
    # ------------------------------------------------------------------ #
    domain_affinity: dict[str, str] = Field(
        default={"accounting": "llama3"},
        description="Domain tag -> model identity fragment earning an affinity bonus",
    )
    inference_backend: Literal["simulated", "litellm"] = Field(
        default="simulated",
        description="Inference capability used by model execution",
    )
    simulated_latency_per_compute_unit_ms: float = Field(
        default=100.0,
        ge=0,
        description="Simulated backend delay per model compute unit",
    )
    litellm_base_url: str = Field(
        default="http://localhost:4000",
        description="LiteLLM proxy base URL (litellm backend only)",
    )
    litellm_api_key: SecretStr = Field(
        default=SecretStr("sk-dev-key"),
        description="API key for LiteLLM proxy",
    )

    # ------------------------------------------------------------------ #
    # Agent Integration & System Monitoring
    # ------------------------------------------------------------------ #
    llm_orchestration_enabled: bool = Field(
        default=True,
        description="Route submitted agent tasks through model orchestration",
    )
    agent_base_domain_tags: list[str] = Field(
        default=["education", "learning"],
        description="Domain tags prepended to every agent task's context",
    )
    health_poll_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between system health snapshots",
    )
    completed_task_capacity: int | None = Field(
        default=None,
        ge=1,
        description="Maximum completed tasks kept in system state (unset = unbounded)",
    )
    task_record_capacity: int | None = Field(
        default=None,
        ge=1,
        description="Maximum per-task processing records kept (unset = unbounded)",
    )
    health_recent_window: int = Field(
        default=100,
        ge=1,
        description="Number of recent executions summarised in each health snapshot",
    )

    # ------------------------------------------------------------------ #
    # Derived / Computed
    # ------------------------------------------------------------------ #
    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def _set_debug_from_env(self) -> Settings:
        if self.environment == Environment.DEV:
            self.debug = True
        return self

    @model_validator(mode="after")
    def _validate_production_backend(self) -> Settings:
        """Refuse to start a production litellm backend with the dev API key."""
        if self.environment != Environment.PROD or self.inference_backend != "litellm":
            return self

        if self.litellm_api_key.get_secret_value() in {"", "sk-dev-key"}:
            raise RuntimeError(
                "PRODUCTION STARTUP BLOCKED -- LITELLM_API_KEY is unset or "
                "contains the development default."
            )
        return self

    @property
    def is_dev(self) -> bool:
        return self.environment in (Environment.DEV, Environment.TEST)

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PROD


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings singleton.

    Call directly at process start (or in scripts) and pass the instance to
    build_runtime(); tests construct Settings explicitly instead.
    """
    return Settings()
