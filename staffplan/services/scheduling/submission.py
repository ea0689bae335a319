"""
Submission flow: validate -> expand -> create schedules -> save template -> record usage.

Store calls are awaited one after another. Nothing is rolled back: if the
schedules are created and a later template step fails, the outcome is
PARTIAL_SUCCESS and the schedules stay.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from .errors import DraftValidationError, FieldError, PersistenceError
from .expander import expand_schedule
from .stores import BaseScheduleStore, BaseTemplateStore
from .templates import build_template_from_draft
from .types import RecordId, ScheduleDraft, ScheduleInstance
from .validation import ensure_valid_draft, local_today


logger = logging.getLogger(__name__)


class SubmissionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    NOTHING_CREATED = "NOTHING_CREATED"
    FAILED = "FAILED"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"


@dataclass
class SubmissionOutcome:
    status: SubmissionStatus
    message: str
    instances: list[ScheduleInstance] = field(default_factory=list)
    template_id: Optional[RecordId] = None
    field_errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status in (SubmissionStatus.SUCCESS, SubmissionStatus.NOTHING_CREATED)


class SubmissionCoordinator:
    """Runs one draft submission against a schedule store and a template store."""

    def __init__(self, schedule_store: BaseScheduleStore, template_store: BaseTemplateStore):
        self.schedule_store = schedule_store
        self.template_store = template_store

    async def submit(self, draft: ScheduleDraft, today: Optional[date] = None) -> SubmissionOutcome:
        today = today or local_today(draft.timezone)

        try:
            ensure_valid_draft(draft, today)
        except DraftValidationError as e:
            logger.info(f"Draft {draft.title!r} rejected: {e}")
            return SubmissionOutcome(
                status=SubmissionStatus.FAILED,
                message=e.error.message,
                field_errors=[e.error],
            )

        instances = expand_schedule(draft, today)
        logger.info(f"Expanded {draft.title!r} into {len(instances)} schedule(s)")

        try:
            created = await self.schedule_store.create_batch(instances)
        except PersistenceError as e:
            logger.error(f"Schedule creation failed for {draft.title!r}: {e}")
            return SubmissionOutcome(
                status=SubmissionStatus.FAILED,
                message=f"Could not create schedules: {e}",
            )

        template_id = None
        try:
            if draft.template.save_as_template:
                template_id = await self._save_template(draft, created)

            if draft.source_template_id is not None and created:
                await self.template_store.increment_usage(draft.source_template_id)
                logger.info(f"Recorded use of template {draft.source_template_id}")
        except PersistenceError as e:
            if not created:
                logger.error(f"Template step failed for {draft.title!r}: {e}")
                return SubmissionOutcome(
                    status=SubmissionStatus.FAILED,
                    message=f"Could not save template: {e}",
                    template_id=template_id,
                )
            logger.warning(
                f"Created {len(created)} schedule(s) for {draft.title!r} but the template step failed: {e}"
            )
            return SubmissionOutcome(
                status=SubmissionStatus.PARTIAL_SUCCESS,
                message=f"Created {len(created)} schedule(s), but the template could not be saved: {e}",
                instances=created,
                template_id=template_id,
            )

        if not created:
            return SubmissionOutcome(
                status=SubmissionStatus.NOTHING_CREATED,
                message="No schedules were created. Check the selected days and shifts.",
                template_id=template_id,
            )

        return SubmissionOutcome(
            status=SubmissionStatus.SUCCESS,
            message=f"Created {len(created)} schedule(s) for {draft.title}",
            instances=created,
            template_id=template_id,
        )

    async def _save_template(self, draft: ScheduleDraft, created: list[ScheduleInstance]) -> RecordId:
        record = build_template_from_draft(draft)
        template_id = await self.template_store.create(record)
        logger.info(f"Saved template {record.name!r} as {template_id}")

        # a new template counts its first use only when it produced schedules
        if created:
            await self.template_store.increment_usage(template_id)
        return template_id
