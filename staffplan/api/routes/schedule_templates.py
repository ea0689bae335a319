from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from staffplan.api.deps import get_current_user, get_template_store, require_branch_access
from staffplan.core.security import TokenData
from staffplan.schemas.schedule_templates import ScheduleTemplateCreate, ScheduleTemplateResponse
from staffplan.schemas.schedules import ScheduleDraftSchema
from staffplan.services.scheduling.errors import PersistenceError
from staffplan.services.scheduling.sql_stores import SqlTemplateStore
from staffplan.services.scheduling.templates import apply_template
from staffplan.services.scheduling.types import TemplateRecord
from staffplan.services.scheduling.validation import validate_advance_days, validate_template_name, validate_time_range

router = APIRouter(prefix="/schedule-templates", tags=["schedule-templates"])


async def _get_template_or_404(store: SqlTemplateStore, template_id: int, user: TokenData) -> TemplateRecord:
    template = await store.get(template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    require_branch_access(user, template.branch_id)
    return template


@router.post("", response_model=ScheduleTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: ScheduleTemplateCreate,
    current_user: TokenData = Depends(get_current_user),
    store: SqlTemplateStore = Depends(get_template_store),
):
    require_branch_access(current_user, payload.branch_id)

    checks = [
        ("name", validate_template_name(payload.name)),
        ("time_range", validate_time_range(payload.start_time, payload.end_time)),
    ]
    for group in payload.shifts or []:
        checks.append(("shifts", validate_time_range(group.start_time, group.end_time)))
    if payload.auto_generate.enabled:
        checks.append(("advance_days", validate_advance_days(payload.auto_generate.advance_days)))
    for field, message in checks:
        if message:
            raise HTTPException(status_code=422, detail={"field": field, "message": message})

    try:
        template_id = await store.create(payload.to_record())
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    template = await store.get(template_id)
    return ScheduleTemplateResponse.from_record(template)


@router.get("/branch/{branch_id}", response_model=List[ScheduleTemplateResponse])
async def list_branch_templates(
    branch_id: str,
    active_only: bool = True,
    current_user: TokenData = Depends(get_current_user),
    store: SqlTemplateStore = Depends(get_template_store),
):
    require_branch_access(current_user, branch_id)
    templates = await store.list_by_branch(branch_id, active_only=active_only)
    return [ScheduleTemplateResponse.from_record(t) for t in templates]


@router.get("/{template_id}", response_model=ScheduleTemplateResponse)
async def get_template(
    template_id: int,
    current_user: TokenData = Depends(get_current_user),
    store: SqlTemplateStore = Depends(get_template_store),
):
    template = await _get_template_or_404(store, template_id, current_user)
    return ScheduleTemplateResponse.from_record(template)


@router.post("/{template_id}/increment-usage", response_model=ScheduleTemplateResponse)
async def increment_template_usage(
    template_id: int,
    current_user: TokenData = Depends(get_current_user),
    store: SqlTemplateStore = Depends(get_template_store),
):
    await _get_template_or_404(store, template_id, current_user)
    try:
        await store.increment_usage(template_id)
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    template = await store.get(template_id)
    return ScheduleTemplateResponse.from_record(template)


@router.post("/{template_id}/apply", response_model=ScheduleDraftSchema)
async def apply_template_to_draft(
    template_id: int,
    payload: ScheduleDraftSchema,
    current_user: TokenData = Depends(get_current_user),
    store: SqlTemplateStore = Depends(get_template_store),
):
    """Seed the posted draft from a template. Nothing is saved."""
    template = await _get_template_or_404(store, template_id, current_user)
    draft = apply_template(template, payload.to_draft())
    return ScheduleDraftSchema.from_draft(draft)
