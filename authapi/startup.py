"""Startup Sequencer: ordered, fail-fast pipeline from env file to listening server.

Invariants:
    - Stages run strictly in order: LOADING → VALIDATING → CONNECTING → LISTENING
    - The first failing step moves the sequencer to FAILED; later steps never run
    - No database connection is attempted before validation passes
    - No listener is started unless the database connection succeeded
    - Only the entry points (main, check) terminate the process

Design Decisions:
    - Steps return StepResult instead of raising: run() is a flat loop with no
      nested branching, each step testable on its own (ADR: explicit pipeline)
    - connect/serve injected as callables: tests drive the sequence without a
      real MongoDB or socket
    - uvicorn.Server.serve() awaited on the same loop that opened the database
      client (ADR: pymongo async client is loop-bound)
"""

import asyncio
import logging
import os
import sys
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import uvicorn
from pydantic import ValidationError

from authapi.config import DEFAULT_ENV_FILE, Settings, load_environment
from authapi.core.env_validation import (
    IssueKind,
    ValidationReport,
    build_configuration_summary,
    validate_environment,
)
from authapi.core.errors import (
    AppError,
    ConfigurationError,
    DatabaseConnectionError,
    ErrorContext,
)
from authapi.infrastructure.database import close_db, connect_db
from authapi.infrastructure.observability import setup_logging
from authapi.main import create_app

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1

ConnectFn = Callable[[str], Awaitable[Any]]
ServeFn = Callable[[Settings], Awaitable[None]]


class StartupStage(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    VALIDATING = "validating"
    CONNECTING = "connecting"
    LISTENING = "listening"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    error: AppError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> "StepResult":
        return cls()

    @classmethod
    def failure(cls, error: AppError) -> "StepResult":
        return cls(error)


# ─── Validation reporting ───────────────────────────────────────

def log_validation_report(report: ValidationReport) -> None:
    """Log a report the way an operator reads it at the console.

    Missing required variables are reported alone: nothing else is worth
    reading until they are set.
    """
    if report.missing_required:
        logger.error("Missing required environment variables:")
        for key in report.missing_required:
            logger.error(f"   - {key}", extra={"env_var": key})
        logger.error(
            "Please check your .env file and ensure all required variables "
            "are set. See .env.example for reference.",
        )
        return

    if report.missing_optional:
        logger.warning("Missing optional environment variables:")
        for key in report.missing_optional:
            logger.warning(f"   - {key}", extra={"env_var": key})
        logger.warning(
            "These variables have default values but you may want to set "
            "them explicitly.",
        )

    for issue in report.errors:
        logger.error(
            issue.message,
            extra={"env_var": issue.env_var, "error_code": issue.kind.value},
        )
    if report.of_kind(IssueKind.PLACEHOLDER_SECRET):
        logger.error("Please generate secure, unique secrets for production use.")

    if report.ok:
        logger.info("Environment variables validation passed")


def validate(env: Mapping[str, str]) -> None:
    """Validate env, log the outcome, exit the process on fatal misconfiguration."""
    report = validate_environment(env)
    log_validation_report(report)
    if not report.ok:
        sys.exit(EXIT_FAILURE)


# ─── Listener ───────────────────────────────────────────────────

async def serve_http(settings: Settings) -> None:
    """Bind uvicorn on settings.host:settings.port and serve until shutdown."""
    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    await uvicorn.Server(config).serve()


# ─── Sequencer ──────────────────────────────────────────────────

class StartupSequencer:
    """Runs the startup pipeline once; inspect stage/error afterwards."""

    def __init__(
        self,
        env_file: str | os.PathLike | None = DEFAULT_ENV_FILE,
        environ: Mapping[str, str] | None = None,
        connect: ConnectFn = connect_db,
        serve: ServeFn = serve_http,
        configure_logging: bool = True,
    ):
        self.env_file = env_file
        self.environ = environ
        self.connect = connect
        self.serve = serve
        self.configure_logging = configure_logging

        self.stage = StartupStage.IDLE
        self.env: dict[str, str] = {}
        self.settings: Settings | None = None
        self.error: AppError | None = None

    async def run(self) -> StepResult:
        steps = (
            (StartupStage.LOADING, self._load_environment),
            (StartupStage.VALIDATING, self._validate),
            (StartupStage.CONNECTING, self._connect),
            (StartupStage.LISTENING, self._listen),
        )
        for stage, step in steps:
            self.stage = stage
            result = await step()
            if not result.ok:
                self.stage = StartupStage.FAILED
                self.error = result.error
                return result
        return StepResult.success()

    async def _load_environment(self) -> StepResult:
        self.env = load_environment(self.env_file, self.environ)
        if self.configure_logging:
            setup_logging(
                self.env.get("LOG_LEVEL") or "INFO",
                (self.env.get("LOG_FORMAT") or "text").strip().lower(),
            )
        return StepResult.success()

    async def _validate(self) -> StepResult:
        report = validate_environment(self.env)
        log_validation_report(report)
        if not report.ok:
            return StepResult.failure(ConfigurationError(
                [issue.message for issue in report.errors],
                ErrorContext(stage=self.stage.value),
            ))

        try:
            self.settings = Settings.from_environment(self.env)
        except ValidationError as e:
            error = ConfigurationError(
                [
                    f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ],
                ErrorContext(stage=self.stage.value),
            )
            logger.error(error.message, extra={"error_code": error.code})
            return StepResult.failure(error)
        return StepResult.success()

    async def _connect(self) -> StepResult:
        try:
            await self.connect(self.settings.database_uri)
        except DatabaseConnectionError as e:
            e.context.stage = self.stage.value
            logger.error(
                f"MongoDB connection error: {e.message}",
                extra={"error_code": e.code, "stage": self.stage.value},
            )
            return StepResult.failure(e)
        return StepResult.success()

    async def _listen(self) -> StepResult:
        self.log_configuration()
        port = self.settings.port
        logger.info(
            f"Server starting on http://localhost:{port}", extra={"port": port},
        )
        logger.info(f"Health check: http://localhost:{port}/api/v1/healthcheck")
        try:
            await self.serve(self.settings)
        finally:
            await close_db()
        return StepResult.success()

    def log_configuration(self) -> None:
        logger.info("Server configuration:")
        for label, value in build_configuration_summary(self.settings):
            logger.info(f"   {label}: {value}")


# ─── Entry points ───────────────────────────────────────────────

def main() -> None:
    sequencer = StartupSequencer()
    result = asyncio.run(sequencer.run())
    if not result.ok:
        sys.exit(EXIT_FAILURE)


def check() -> None:
    """Validate the environment only (no database, no listener)."""
    env = load_environment()
    setup_logging(
        env.get("LOG_LEVEL") or "INFO",
        (env.get("LOG_FORMAT") or "text").strip().lower(),
    )
    validate(env)
