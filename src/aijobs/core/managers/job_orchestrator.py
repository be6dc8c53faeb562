"""JobOrchestrator: caller-facing entry point of the job core.

Responsibilities:
1. Create the job record in the store (errors are fatal to the flow).
2. Fire the execution trigger without waiting for its outcome.
3. Hand back the job id and a ResolveHandle that, when awaited, runs the
   completion resolver (adaptive polling plus final check).
4. Notify lifecycle observers.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, List, Optional, Set

from aijobs.core.interfaces.job_repository import JobRepositoryPort
from aijobs.core.interfaces.observers import JobStateObserver
from aijobs.core.interfaces.trigger import TriggerPort
from aijobs.core.managers.resolver import CompletionResolver
from aijobs.core.models.job import AIJob, JobType
from aijobs.core.registries import CircuitBreakerRegistry, PollRegistry
from aijobs.core.services.job_requests import JobRequest
from aijobs.core.settings import logger


class ResolveHandle:
    """Lazy, shareable handle on the resolution of one job.

    The resolution task starts on the first `wait()` (or `start()`) and is
    shared by every waiter. Cancelling one waiter leaves the resolution
    running for the others. `cancel()` stops it for everyone; the poller then
    stops reading and releases the job id.
    """

    def __init__(
        self,
        job_id: str,
        resolve: Callable[[], Awaitable[AIJob]],
        on_start: Optional[Callable[["ResolveHandle"], Any]] = None,
    ) -> None:
        self.job_id = job_id
        self._resolve = resolve
        self._on_start = on_start
        self._task: Optional[asyncio.Task] = None
        self._callbacks: List[Callable[["ResolveHandle"], Any]] = []

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self._resolve(), name=f"resolve-{self.job_id}")
            if self._on_start is not None:
                self._on_start(self)
            for callback in self._callbacks:
                self._task.add_done_callback(partial(self._run_callback, callback))
            self._callbacks.clear()
        return self._task

    async def wait(self) -> AIJob:
        """Return the terminal job, or raise why it could not be resolved."""
        return await asyncio.shield(self.start())

    def __await__(self):
        return self.wait().__await__()

    def add_done_callback(self, callback: Callable[["ResolveHandle"], Any]) -> None:
        """Call `callback(handle)` once resolution finishes, in any way."""
        if self._task is None:
            self._callbacks.append(callback)
        else:
            self._task.add_done_callback(partial(self._run_callback, callback))

    def _run_callback(self, callback: Callable[["ResolveHandle"], Any], _task: asyncio.Task) -> None:
        try:
            callback(self)
        except Exception as exc:
            logger.error(f"[job:handle] done callback failed job_id={self.job_id} error={exc!r}")

    def cancel(self) -> bool:
        if self._task is None:
            return False
        return self._task.cancel()

    def started(self) -> bool:
        return self._task is not None

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def result(self) -> AIJob:
        if self._task is None:
            raise asyncio.InvalidStateError("resolution not started")
        return self._task.result()

    def exception(self) -> Optional[BaseException]:
        if self._task is None:
            raise asyncio.InvalidStateError("resolution not started")
        return self._task.exception()


class JobOrchestrator:
    def __init__(
        self,
        job_repo: JobRepositoryPort,
        trigger: TriggerPort,
        resolver: CompletionResolver,
        circuit: CircuitBreakerRegistry,
        registry: PollRegistry,
        observers: Optional[List[JobStateObserver]] = None,
    ) -> None:
        self._repo = job_repo
        self._trigger = trigger
        self._resolver = resolver
        self._circuit = circuit
        self._registry = registry
        self._observers = observers or []
        self._handles: Set[ResolveHandle] = set()

    async def _notify(self, event: str, *args) -> None:
        for observer in self._observers:
            try:
                await getattr(observer, event)(*args)
            except Exception as exc:
                logger.error(
                    f"[observer:error] {event} failed observer={type(observer).__name__} error={exc}"
                )

    async def create_and_run(
        self,
        owner_id: str,
        job_type: JobType | str,
        input: Any,
        *,
        max_attempts: Optional[int] = None,
        initial_interval: Optional[float] = None,
        log_prefix: Optional[str] = None,
    ) -> tuple[str, ResolveHandle]:
        """Create a job, fire its trigger, and return (job_id, handle).

        Creation errors propagate. Trigger errors are logged only: the runner
        may still pick the job up, and the poll will tell.
        """
        job_type = JobType(job_type)
        job = await self._repo.create(owner_id, job_type, input)
        logger.info(f"[job:create] created job_id={job.id} job_type={job.job_type}")
        await self._notify("on_job_created", job)

        try:
            await self._trigger.trigger(job.id)
        except Exception as exc:
            logger.warning(
                f"[job:trigger] failed to trigger job execution, but job was created "
                f"job_id={job.id} error={type(exc).__name__}: {exc}"
            )

        return job.id, self.handle(
            job.id,
            max_attempts=max_attempts,
            initial_interval=initial_interval,
            log_prefix=log_prefix,
        )

    async def submit(self, owner_id: str, request: JobRequest, **options) -> tuple[str, ResolveHandle]:
        return await self.create_and_run(owner_id, request.job_type, request.input, **options)

    def handle(
        self,
        job_id: str,
        *,
        max_attempts: Optional[int] = None,
        initial_interval: Optional[float] = None,
        log_prefix: Optional[str] = None,
    ) -> ResolveHandle:
        """Build a resolve handle for an existing job id.

        The orchestrator only tracks a handle while its resolution runs, so a
        handle that is never awaited costs nothing.
        """
        return ResolveHandle(
            job_id,
            partial(self._resolve_and_notify, job_id, max_attempts, initial_interval, log_prefix),
            on_start=self._track,
        )

    def _track(self, handle: ResolveHandle) -> None:
        self._handles.add(handle)
        handle.add_done_callback(self._handles.discard)

    def _is_resolving(self, job_id: str) -> bool:
        return any(h.job_id == job_id and not h.done() for h in self._handles)

    async def wait(self, job_id: str, **options) -> AIJob:
        handle = self.handle(job_id, **options)
        try:
            return await handle.wait()
        except asyncio.CancelledError:
            # nobody else can wait on this handle
            handle.cancel()
            raise

    async def wait_for_completion(
        self,
        job_id: str,
        *,
        max_rounds: Optional[int] = None,
        max_attempts: Optional[int] = None,
        initial_interval: Optional[float] = None,
        log_prefix: Optional[str] = None,
    ) -> AIJob:
        """Like `wait`, but starts a new resolve round after each timeout."""
        try:
            job = await self._resolver.wait_for_completion(
                job_id, max_attempts, initial_interval, log_prefix, max_rounds=max_rounds
            )
        except Exception as exc:
            await self._notify("on_job_unresolved", job_id, exc)
            raise
        await self._notify("on_job_completed", job)
        return job

    async def _resolve_and_notify(
        self,
        job_id: str,
        max_attempts: Optional[int],
        initial_interval: Optional[float],
        log_prefix: Optional[str],
    ) -> AIJob:
        try:
            job = await self._resolver.resolve(job_id, max_attempts, initial_interval, log_prefix)
        except Exception as exc:
            await self._notify("on_job_unresolved", job_id, exc)
            raise
        await self._notify("on_job_completed", job)
        return job

    def is_circuit_open(self, job_id: str) -> bool:
        return self._circuit.is_open(job_id)

    def reset(self, job_id: str) -> None:
        """Forget failure history and in-flight state for a job id.

        The in-flight entry is kept while one of this orchestrator's handles
        is still resolving the id; that loop releases it when it ends.
        """
        self._circuit.reset(job_id)
        if self._is_resolving(job_id):
            logger.debug(f"[circuit] reset job_id={job_id}, poll still running")
            return
        self._registry.release(job_id)
        logger.debug(f"[circuit] reset job_id={job_id}")

    async def shutdown(self) -> None:
        tasks = []
        for handle in list(self._handles):
            handle.cancel()
            tasks.append(handle.start())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._handles.clear()
        await self._trigger.close()
