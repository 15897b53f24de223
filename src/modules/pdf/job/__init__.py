from .stale_artifacts_job import schedule_stale_artifact_job

__all__ = ['schedule_stale_artifact_job']
