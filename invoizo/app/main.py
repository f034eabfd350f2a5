# Invoizo backend entrypoint: invoice lifecycle API plus the daily background jobs.

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from invoizo.app.api import admin, invoices, payments
from invoizo.app.core.exceptions import register_exception_handlers
from invoizo.app.core.settings import get_settings
from invoizo.app.db.base import Base
from invoizo.app.db.session import engine
from invoizo.app.jobs.scheduler import shutdown_scheduler, start_scheduler

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version=settings.API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(invoices.router)
app.include_router(payments.router)
app.include_router(admin.router)


@app.get("/")
def read_root():
    return {"app": "Invoizo backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def start_background_jobs():
    Base.metadata.create_all(bind=engine)
    if start_scheduler():
        logger.info("Background jobs started")


@app.on_event("shutdown")
def stop_background_jobs():
    shutdown_scheduler()
