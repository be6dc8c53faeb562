# main.py
import argparse
import asyncio
import json
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from aijobs.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from aijobs.adapters.credentials_static import StaticCredentialsAdapter
from aijobs.adapters.job_repository_rest import RestJobRepository
from aijobs.adapters.retry_tenacity import TenacityRetryAdapter
from aijobs.adapters.trigger_http import HttpExecutionTrigger
from aijobs.core.config import PollingConfig, StoreConfig, TriggerConfig
from aijobs.core.exceptions import AIJobError, PollingTimeoutError
from aijobs.core.interfaces.http_client import HttpClientPort
from aijobs.core.interfaces.observers import JobStateObserver
from aijobs.core.logging_config import configure_logging
from aijobs.core.managers.job_orchestrator import JobOrchestrator
from aijobs.core.managers.observers import LoggingObserver
from aijobs.core.managers.poller import AdaptivePoller
from aijobs.core.managers.resolver import CompletionResolver
from aijobs.core.models.job import AIJob, JobStatus, JobType
from aijobs.core.registries import CircuitBreakerRegistry, PollRegistry
from aijobs.core.settings import AIJobsSettings, app_settings, logger

EXIT_SUCCEEDED = 0
EXIT_FAILED = 1
EXIT_UNRESOLVED = 2


# main lives at the outermost layer (not in core)
# Instantiates all the concrete adapters
# Wires dependencies together
# Registries are created here once and shared by everything built below
@asynccontextmanager
async def build_orchestrator(
    settings: AIJobsSettings = app_settings,
    http_client: Optional[HttpClientPort] = None,
    observers: Optional[List[JobStateObserver]] = None,
) -> AsyncIterator[JobOrchestrator]:
    http_client = http_client or AioHttpClientAdapter(default_total=settings.AIJOBS_STORE_TIMEOUT)
    async with http_client as client:
        credentials = StaticCredentialsAdapter.from_app_settings(settings)
        job_repo = RestJobRepository(client, credentials, StoreConfig.from_app_settings(settings))
        trigger = HttpExecutionTrigger(client, credentials, TriggerConfig.from_app_settings(settings, logger))

        circuit = CircuitBreakerRegistry()
        registry = PollRegistry()
        poller = AdaptivePoller(job_repo, circuit, registry, PollingConfig.from_app_settings(settings))
        resolver = CompletionResolver(poller, job_repo, TenacityRetryAdapter())

        orchestrator = JobOrchestrator(
            job_repo,
            trigger,
            resolver,
            circuit,
            registry,
            observers=observers if observers is not None else [LoggingObserver()],
        )
        try:
            yield orchestrator
        finally:
            await orchestrator.shutdown()


def _exit_code(job: AIJob) -> int:
    print(job.model_dump_json(by_alias=True, indent=2))
    return EXIT_SUCCEEDED if job.status == JobStatus.succeeded else EXIT_FAILED


async def _run(args: argparse.Namespace, settings: AIJobsSettings) -> int:
    async with build_orchestrator(settings) as orchestrator:
        options = {
            "max_attempts": args.max_attempts,
            "initial_interval": args.initial_interval,
            "log_prefix": args.log_prefix,
        }
        try:
            if args.command == "run":
                job_id, handle = await orchestrator.create_and_run(
                    args.owner, args.job_type, args.input, **options
                )
                logger.info(f"[cli] created job_id={job_id}")
                if not args.keep_waiting:
                    return _exit_code(await handle.wait())
            else:
                job_id = args.job_id
                if not args.keep_waiting:
                    return _exit_code(await orchestrator.wait(job_id, **options))
            return _exit_code(await orchestrator.wait_for_completion(job_id, **options))
        except PollingTimeoutError as exc:
            logger.warning(f"[cli] job is taking longer than expected, check back later: {exc}")
            return EXIT_UNRESOLVED
        except AIJobError as exc:
            logger.error(f"[cli] {type(exc).__name__}: {exc}")
            return EXIT_UNRESOLVED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aijobs", description="Create and wait for AI generation jobs")
    parser.add_argument("--max-attempts", type=int, default=None)
    parser.add_argument("--initial-interval", type=float, default=None, help="seconds")
    parser.add_argument("--log-prefix", default=None)
    parser.add_argument("--keep-waiting", action="store_true", help="start a new poll round after each timeout")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="create a job, trigger it and wait for the outcome")
    run.add_argument("job_type", choices=[t.value for t in JobType])
    run.add_argument("--owner", required=True)
    run.add_argument("--input", default="{}", help="job input as JSON")

    wait = sub.add_parser("wait", help="wait for an existing job")
    wait.add_argument("job_id")
    return parser


def main(argv: Optional[List[str]] = None, settings: AIJobsSettings = app_settings) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "run":
        try:
            args.input = json.loads(args.input)
        except ValueError as exc:
            parser.error(f"--input is not valid JSON: {exc}")
    configure_logging(settings.AIJOBS_LOG_LEVEL)
    settings.print_settings(logger)
    return asyncio.run(_run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
