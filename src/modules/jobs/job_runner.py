"""
Asynchronous job runner.

A workflow is any callable; ``start`` enqueues it with its arguments and returns
immediately with a run id. Workflows report their own outcome (the PDF workflow
writes it to the artifact row), so the runner only logs failures.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import Request

from logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class JobRun:
    run_id: str


class JobRunner(ABC):

    @abstractmethod
    def start(self, workflow: Callable[..., Any], args: Sequence[Any] = ()) -> JobRun:
        pass

    def startup(self) -> None:
        pass

    def shutdown(self) -> None:
        pass


class SchedulerJobRunner(JobRunner):
    """Runs each workflow once, right away, on an APScheduler background thread pool."""

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None):
        self.scheduler = scheduler or BackgroundScheduler()
        self.scheduler.add_listener(self._on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    def _on_job_event(self, event) -> None:
        if event.exception:
            logger.error(f"Job {event.job_id} failed: {event.exception}")
        else:
            logger.info(f"Job {event.job_id} completed")

    def start(self, workflow: Callable[..., Any], args: Sequence[Any] = ()) -> JobRun:
        run_id = uuid.uuid4().hex
        self.scheduler.add_job(
            workflow,
            trigger="date",
            args=list(args),
            id=run_id,
            name=getattr(workflow, "__name__", type(workflow).__name__),
            misfire_grace_time=None,
        )
        logger.info(f"Job {run_id} enqueued")
        return JobRun(run_id=run_id)

    def startup(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)


class InlineJobRunner(JobRunner):
    """Runs the workflow synchronously inside start(). Failures are recorded, not raised."""

    def __init__(self):
        self.runs: list[tuple[str, Optional[BaseException]]] = []

    def start(self, workflow: Callable[..., Any], args: Sequence[Any] = ()) -> JobRun:
        run_id = uuid.uuid4().hex
        error = None
        try:
            workflow(*args)
        except Exception as e:
            error = e
            logger.error(f"Job {run_id} failed: {e}")
        self.runs.append((run_id, error))
        return JobRun(run_id=run_id)


def build_job_runner(kind: str) -> JobRunner:
    if kind == "scheduler":
        return SchedulerJobRunner()
    if kind == "inline":
        return InlineJobRunner()
    raise ValueError(f"Unknown JOB_RUNNER: {kind}")


def get_job_runner(request: Request) -> JobRunner:
    return request.app.state.job_runner
