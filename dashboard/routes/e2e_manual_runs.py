from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from redis import Redis
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from dashboard.core.dependencies import RequireApiKey
from dashboard.db.redis import get_redis
from dashboard.db.session import get_db
from dashboard.models.e2e_manual_run import E2EManualRun
from dashboard.schemas.e2e_manual_run import E2EManualRunCreate, E2EManualRunResponse
from dashboard.schemas.pagination import PaginationParams, PaginatedResponse
from dashboard.services import e2e_manual_runs
from dashboard.services.circle_ci import CircleCIClient, get_circle_ci_client

router = APIRouter(prefix="/api/e2e_manual_runs", tags=["e2e_manual_runs"], dependencies=[RequireApiKey])


@router.get("", response_model=PaginatedResponse[E2EManualRunResponse])
def list_manual_runs(
    db: Session = Depends(get_db),
    pagination: PaginationParams = Depends(),
):
    total = db.execute(select(func.count(E2EManualRun.id))).scalar_one()

    query = (
        select(E2EManualRun)
        .order_by(E2EManualRun.created_at.desc(), E2EManualRun.id.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
    )
    runs = db.execute(query).scalars().all()

    return PaginatedResponse.build(runs, total, pagination)


@router.get("/app/{app_id}", response_model=list[E2EManualRunResponse])
def list_manual_runs_for_app(
    app_id: int,
    db: Session = Depends(get_db),
    date_from: Optional[date] = Query(None, alias="from", description="Runs created on or after this day"),
    date_to: Optional[date] = Query(None, alias="to", description="Runs created on or before this day"),
):
    return e2e_manual_runs.list_by_app(db, app_id, date_from=date_from, date_to=date_to)


@router.get("/app-code/{app_code}", response_model=list[E2EManualRunResponse])
def list_manual_runs_for_app_code(app_code: str, db: Session = Depends(get_db)):
    return e2e_manual_runs.list_by_app_code(db, app_code)


@router.get("/{run_id}", response_model=E2EManualRunResponse)
def get_manual_run(run_id: int, db: Session = Depends(get_db)):
    return e2e_manual_runs.get_run(db, run_id)


@router.post("", response_model=E2EManualRunResponse, status_code=201)
def create_manual_run(
    body: E2EManualRunCreate,
    db: Session = Depends(get_db),
    redis: Redis = Depends(get_redis),
    circle_ci: CircleCIClient = Depends(get_circle_ci_client),
):
    return e2e_manual_runs.create_manual_run(db, redis, circle_ci, body.app_id)


@router.delete("/{run_id}", status_code=204)
def delete_manual_run(run_id: int, db: Session = Depends(get_db)):
    e2e_manual_runs.delete_run(db, run_id)
