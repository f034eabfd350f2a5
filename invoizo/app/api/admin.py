"""Operational routes: legacy invoice backfill and background job status."""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from invoizo.app.db.session import get_db
from invoizo.app.dependencies.auth import get_current_owner_id
from invoizo.app.jobs.scheduler import get_job_status
from invoizo.app.services.migration import migrate_invoices

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/migration/invoices")
def run_invoice_migration(db: Session = Depends(get_db), owner_id: str = Depends(get_current_owner_id)):
    result = migrate_invoices(db)
    # 207 signals a partial backfill that needs manual review.
    return JSONResponse(status_code=200 if result.success else 207, content=asdict(result))


@router.get("/jobs")
def list_scheduled_jobs(owner_id: str = Depends(get_current_owner_id)):
    return {"jobs": get_job_status()}
