import sys

# Logging adapter for package-wide logging
from aijobs.adapters.logging_adapter import LoggingAdapter

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings
from rich import print

from aijobs.core.interfaces.logging import LoggingPort


# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class AIJobsSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }
    AIJOBS_LOG_LEVEL: str = "INFO"
    # development mode shortens the default poll budget
    AIJOBS_DEV_MODE: bool = False

    # job store (PostgREST-style, e.g. a hosted Postgres REST endpoint)
    AIJOBS_STORE_URL: str = "http://localhost:54321"
    AIJOBS_STORE_ANON_KEY: SecretStr = SecretStr("")
    AIJOBS_STORE_TABLE: str = "ai_jobs"
    AIJOBS_STORE_TIMEOUT: float = 10.0
    AIJOBS_ACCESS_TOKEN: SecretStr | None = None

    # job runner (serverless function that executes jobs)
    AIJOBS_RUNNER_URL: str = ""
    AIJOBS_RUNNER_DEV_URL: str = "http://localhost:8888"
    AIJOBS_RUNNER_PATH: str = "/.netlify/functions/ai-job-runner"
    AIJOBS_TRIGGER_TIMEOUT: float = 5.0

    # polling; None keeps the environment default (60 prod / 30 dev)
    AIJOBS_POLL_MAX_ATTEMPTS: int | None = None
    AIJOBS_POLL_INITIAL_INTERVAL: float = 2.0
    AIJOBS_POLL_MAX_INTERVAL: float = 10.0

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("aijobs settings:")
        # stderr keeps stdout free for command output
        print(self, file=sys.stderr)

    @field_validator("AIJOBS_STORE_URL", "AIJOBS_RUNNER_URL", "AIJOBS_RUNNER_DEV_URL", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


app_settings = AIJobsSettings()

logger = LoggingAdapter("aijobs", app_settings.AIJOBS_LOG_LEVEL)
