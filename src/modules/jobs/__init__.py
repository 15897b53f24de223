from .job_runner import (
    InlineJobRunner, JobRun, JobRunner, SchedulerJobRunner, build_job_runner, get_job_runner,
)

__all__ = ['InlineJobRunner', 'JobRun', 'JobRunner', 'SchedulerJobRunner', 'build_job_runner', 'get_job_runner']
