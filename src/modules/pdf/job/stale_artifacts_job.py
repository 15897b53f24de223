from apscheduler.schedulers.base import BaseScheduler
from modules.pdf.services.stale_artifacts import fail_stale_artifacts
from database import SessionLocal

def schedule_stale_artifact_job(scheduler: BaseScheduler):
    def job():
        with SessionLocal() as session:
            fail_stale_artifacts(session)

    scheduler.add_job(job, 'interval', minutes=10, id='pdf-stale-artifacts', replace_existing=True)
