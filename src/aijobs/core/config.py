"""Configuration models for core domain components.

Pydantic-based, immutable configuration objects built once in the
composition root and injected into the poller, resolver and trigger.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

PRODUCTION_MAX_ATTEMPTS = 60
DEVELOPMENT_MAX_ATTEMPTS = 30
DEFAULT_INITIAL_INTERVAL = 2.0
DEFAULT_MAX_INTERVAL = 10.0


class PollingConfig(BaseModel):
    """Polling budget for the adaptive poller.

    Intervals are seconds. The backoff doubles from `initial_interval` up to
    `max_interval`; at production defaults the worst case wait is roughly
    ten minutes of wall time spread over 60 reads, most of them 10 s apart.

    Attributes:
        max_attempts: Number of reads before giving up with a timeout
        initial_interval: First sleep between reads
        max_interval: Backoff ceiling
    """

    max_attempts: int = Field(
        default=PRODUCTION_MAX_ATTEMPTS,
        ge=1,
        description="Maximum number of job reads per poll invocation",
    )

    initial_interval: float = Field(
        default=DEFAULT_INITIAL_INTERVAL,
        gt=0,
        description="Seconds to sleep after the first non-terminal read",
    )

    max_interval: float = Field(
        default=DEFAULT_MAX_INTERVAL,
        gt=0,
        description="Upper bound in seconds for the doubling backoff",
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def _ceiling_not_below_start(self) -> "PollingConfig":
        if self.max_interval < self.initial_interval:
            raise ValueError("max_interval must be >= initial_interval")
        return self

    @classmethod
    def for_environment(cls, dev_mode: bool) -> "PollingConfig":
        """Defaults for production (60 attempts) or development (30 attempts)."""
        return cls(
            max_attempts=DEVELOPMENT_MAX_ATTEMPTS if dev_mode else PRODUCTION_MAX_ATTEMPTS,
            initial_interval=DEFAULT_INITIAL_INTERVAL,
            max_interval=DEFAULT_MAX_INTERVAL,
        )

    @classmethod
    def from_app_settings(cls, settings) -> "PollingConfig":
        """Factory method to construct config from an AIJobsSettings instance."""
        base = cls.for_environment(settings.AIJOBS_DEV_MODE)
        return cls(
            max_attempts=settings.AIJOBS_POLL_MAX_ATTEMPTS or base.max_attempts,
            initial_interval=settings.AIJOBS_POLL_INITIAL_INTERVAL,
            max_interval=settings.AIJOBS_POLL_MAX_INTERVAL,
        )


class TriggerConfig(BaseModel):
    """Where and how long the execution trigger may talk to the job runner.

    Attributes:
        base_url: Runner origin; empty means a relative URL
        function_path: Path of the runner function under base_url
        timeout: Ceiling in seconds for the whole dispatch exchange
    """

    base_url: str = ""
    function_path: str = "/.netlify/functions/ai-job-runner"
    timeout: float = Field(default=5.0, gt=0)

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @property
    def function_url(self) -> str:
        return f"{self.base_url}{self.function_path}"

    @classmethod
    def from_app_settings(cls, settings, logger: Optional[object] = None) -> "TriggerConfig":
        """Resolve the runner base URL: explicit URL first, then the dev URL
        in development mode, else relative."""
        base_url = settings.AIJOBS_RUNNER_URL
        if not base_url and settings.AIJOBS_DEV_MODE:
            base_url = settings.AIJOBS_RUNNER_DEV_URL
        if not base_url and logger is not None:
            logger.warning(
                "[job:trigger] AIJOBS_RUNNER_URL not set, using relative runner URL %s",
                settings.AIJOBS_RUNNER_PATH,
            )
        return cls(
            base_url=base_url,
            function_path=settings.AIJOBS_RUNNER_PATH,
            timeout=settings.AIJOBS_TRIGGER_TIMEOUT,
        )


class StoreConfig(BaseModel):
    """Location of the PostgREST-style job table."""

    base_url: str
    table: str = "ai_jobs"
    timeout: float = Field(default=10.0, gt=0)

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @property
    def table_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/rest/v1/{self.table}"

    @classmethod
    def from_app_settings(cls, settings) -> "StoreConfig":
        return cls(
            base_url=settings.AIJOBS_STORE_URL,
            table=settings.AIJOBS_STORE_TABLE,
            timeout=settings.AIJOBS_STORE_TIMEOUT,
        )
