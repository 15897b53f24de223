import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from config import settings
from create_tables import create_tables
from database import SessionLocal
from logging_config import get_logger, setup_logging

from modules.common.handlers import register_exception_handlers
from modules.jobs import SchedulerJobRunner, build_job_runner
from modules.pdf.job import schedule_stale_artifact_job
from modules.templates.controllers.template_controller import router as template_router
from modules.intakes.controllers.intake_controller import router as intake_router
from modules.submissions.controllers.submission_controller import router as submission_router
from modules.pdf.controllers.pdf_controller import router as pdf_router

setup_logging()
logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup logic ---
    logger.info("Starting application")
    create_tables()
    job_runner = app.state.job_runner
    if isinstance(job_runner, SchedulerJobRunner):
        schedule_stale_artifact_job(job_runner.scheduler)
    job_runner.startup()
    logger.info(f"Job runner started ({settings.JOB_RUNNER})")
    if settings.SEED_DEMO_DATA:
        from seed import seed_demo_data
        with SessionLocal() as session:
            seed_demo_data(session)
    yield
    # --- Shutdown logic ---
    job_runner.shutdown()
    logger.info("Application stopped")

app = FastAPI(
    title="Consent Intake API",
    description="Versioned consent templates, single-use intake links, signatures and audit PDFs",
    version="1.0.0",
    lifespan=lifespan
)
app.state.job_runner = build_job_runner(settings.JOB_RUNNER)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Accept", "Content-Type", "Authorization", "Origin"],
    max_age=86400,
)
register_exception_handlers(app)

# Routers
app.include_router(template_router)
app.include_router(intake_router)
app.include_router(submission_router)
app.include_router(pdf_router)

if settings.BLOB_BACKEND == "local":
    app.mount("/blobs", StaticFiles(directory=settings.BLOB_LOCAL_DIR, check_dir=False), name="blobs")

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
