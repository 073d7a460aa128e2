"""
Session Scheduler

Owns every periodic timer of one validation session inside a single anyio
cancel scope. Callers only see start() and stop(); no timer handle escapes.
"""

from typing import Awaitable, Callable, Optional

import anyio
from anyio import CancelScope
from anyio.abc import TaskGroup
import attrs

from src.platform.logging.loguru_io import Logger


JobCallback = Callable[[], Awaitable[None]]


@attrs.define(frozen=True)
class PeriodicJob:
    name: str
    interval: float
    callback: JobCallback
    immediate: bool = False  # Fire once at start before the first interval
    detached: bool = False  # Run in the owner's task group, survives stop()


class SessionScheduler:
    """
    Usage:
        scheduler = SessionScheduler(task_group=tg, name='session-42-1')
        scheduler.every(1.0, on_tick, name='countdown')
        scheduler.every(10.0, rotate, name='rotation', immediate=True, detached=True)
        scheduler.alongside(watch_status, name='status-watch')
        scheduler.start()
        ...
        scheduler.stop()  # idempotent; nothing fires afterwards

    Detached jobs are spawned into the owner's task group so an in-flight
    network fetch is allowed to finish after stop(); the owner must discard
    its result.
    """

    def __init__(self, *, task_group: TaskGroup, name: str = 'session') -> None:
        self._task_group = task_group
        self._name = name
        self._jobs: list[PeriodicJob] = []
        self._companions: list[tuple[str, JobCallback]] = []
        self._cancel_scope: Optional[CancelScope] = None
        self._started = False
        self._stopped = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        return self._started and not self._stopped

    @property
    def jobs(self) -> tuple[PeriodicJob, ...]:
        return tuple(self._jobs)

    def every(
        self,
        interval: float,
        callback: JobCallback,
        *,
        name: str,
        immediate: bool = False,
        detached: bool = False,
    ) -> 'SessionScheduler':
        if self._started:
            raise RuntimeError(f'Scheduler {self._name} already started')
        if interval <= 0:
            raise ValueError(f'Job {name} interval must be positive, got {interval}')
        self._jobs.append(
            PeriodicJob(
                name=name,
                interval=interval,
                callback=callback,
                immediate=immediate,
                detached=detached,
            )
        )
        return self

    def alongside(self, func: JobCallback, *, name: str) -> 'SessionScheduler':
        """Run a long-lived companion task (e.g. a status watcher) under the same scope"""
        if self._started:
            raise RuntimeError(f'Scheduler {self._name} already started')
        self._companions.append((name, func))
        return self

    def start(self) -> None:
        if self._started:
            raise RuntimeError(f'Scheduler {self._name} already started')
        self._started = True
        self._cancel_scope = CancelScope()
        self._task_group.start_soon(self._run, self._cancel_scope, name=f'scheduler:{self._name}')
        Logger.base.debug(
            f'⏱️ [SCHEDULER] {self._name} started '
            f'(jobs={[job.name for job in self._jobs]}, '
            f'companions={[name for name, _ in self._companions]})'
        )

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()
        Logger.base.debug(f'⏱️ [SCHEDULER] {self._name} stopped')

    async def _run(self, cancel_scope: CancelScope) -> None:
        with cancel_scope:
            async with anyio.create_task_group() as tg:
                for job in self._jobs:
                    tg.start_soon(self._drive, job, name=f'{self._name}:{job.name}')
                for name, func in self._companions:
                    tg.start_soon(self._companion, name, func, name=f'{self._name}:{name}')

    async def _drive(self, job: PeriodicJob) -> None:
        if job.immediate:
            await self._fire(job)
        while not self._stopped:
            await anyio.sleep(job.interval)
            await self._fire(job)

    async def _fire(self, job: PeriodicJob) -> None:
        if self._stopped:
            return
        if job.detached:
            self._task_group.start_soon(
                self._invoke, job.name, job.callback, name=f'{self._name}:{job.name}:detached'
            )
        else:
            await self._invoke(job.name, job.callback)

    async def _companion(self, name: str, func: JobCallback) -> None:
        if self._stopped:
            return
        await self._invoke(name, func)

    async def _invoke(self, name: str, callback: JobCallback) -> None:
        # A failing job must not take down its siblings or the owner's task group
        try:
            await callback()
        except Exception as e:
            Logger.base.exception(f'⏱️ [SCHEDULER] {self._name}:{name} failed: {e}')
