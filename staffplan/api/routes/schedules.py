import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import date

from staffplan.api.deps import get_db, get_current_user, get_submission_coordinator, require_branch_access
from staffplan.core.security import TokenData
from staffplan.db.models.schedules import Schedules
from staffplan.schemas.schedules import ScheduleDraftSchema, ScheduleResponse, SubmissionResponse
from staffplan.services.scheduling.expander import expand_schedule
from staffplan.services.scheduling.sql_stores import schedule_from_row
from staffplan.services.scheduling.submission import SubmissionCoordinator, SubmissionStatus
from staffplan.services.scheduling.validation import local_today

router = APIRouter(prefix="/schedules", tags=["schedules"])

logger = logging.getLogger(__name__)


@router.post("/preview", response_model=List[ScheduleResponse])
def preview_schedules(
    payload: ScheduleDraftSchema,
    current_user: TokenData = Depends(get_current_user),
):
    """Expand a draft without saving anything."""
    if payload.branch_id:
        require_branch_access(current_user, payload.branch_id)

    draft = payload.to_draft()
    instances = expand_schedule(draft, local_today(draft.timezone))
    return [ScheduleResponse.from_instance(i) for i in instances]


@router.post("/submit", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_schedules(
    payload: ScheduleDraftSchema,
    current_user: TokenData = Depends(get_current_user),
    coordinator: SubmissionCoordinator = Depends(get_submission_coordinator),
):
    """Validate, expand and save a draft, optionally saving it as a template.
    Returns 201 for SUCCESS, NOTHING_CREATED and PARTIAL_SUCCESS; callers must check status.
    """
    if payload.branch_id:
        require_branch_access(current_user, payload.branch_id)

    outcome = await coordinator.submit(payload.to_draft())

    if outcome.status == SubmissionStatus.FAILED:
        if outcome.field_errors:
            error = outcome.field_errors[0]
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"field": error.field, "message": error.message},
            )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=outcome.message)

    logger.info(f"User {current_user.user_id} submitted {payload.title!r}: {outcome.status.value}")
    return SubmissionResponse.from_outcome(outcome)


@router.get("", response_model=List[ScheduleResponse])
def list_schedules(
    staff_id: Optional[str] = None,
    branch_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    query = db.query(Schedules)

    # restrict to the token's branches (empty list = all branches)
    if current_user.branch_ids:
        if branch_id and branch_id not in current_user.branch_ids:
            raise HTTPException(status_code=403, detail="No access to this branch")
        query = query.filter(Schedules.branch_id.in_(current_user.branch_ids))

    # optional filters
    if staff_id:
        query = query.filter(Schedules.staff_id == staff_id)
    if branch_id:
        query = query.filter(Schedules.branch_id == branch_id)
    if start_date:
        query = query.filter(Schedules.schedule_date >= start_date)
    if end_date:
        query = query.filter(Schedules.schedule_date <= end_date)

    rows = query.order_by(Schedules.schedule_date, Schedules.start_time).offset(skip).limit(limit).all()
    return [ScheduleResponse.from_instance(schedule_from_row(r)) for r in rows]
