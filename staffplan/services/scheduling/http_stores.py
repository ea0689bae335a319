"""
Stores backed by the upstream gym management REST API.
Upstream payloads are camelCase and wrapped in a {"success", "data"} envelope.
Related entities come back either as a plain id or as a populated object with "_id".
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional

import httpx

from staffplan.core.config import settings

from .errors import PersistenceError
from .shift_times import normalize_hhmm
from .stores import BaseScheduleStore, BaseTemplateStore
from .template_codec import decode
from .types import (
    AutoGenerateSettings,
    RecordId,
    ScheduleInstance,
    ScheduleStatus,
    ScheduleType,
    TemplateRecord,
    Weekday,
)


logger = logging.getLogger(__name__)


def _ref_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        return value.get("_id") or value.get("id")
    return str(value)


def _ref_name(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("fullName") or value.get("name")
    return None


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def schedule_to_payload(instance: ScheduleInstance) -> dict:
    payload = {
        "name": instance.name,
        "type": instance.type.value,
        "ptId": instance.staff_id,
        "scheduleDate": instance.date.isoformat(),
        "branchId": instance.branch_id,
        "startTime": instance.start_time,
        "endTime": instance.end_time,
        "status": instance.status.value,
        "maxCapacity": instance.max_capacity,
        "currentBookings": instance.current_bookings,
        "isRecurring": instance.is_recurring,
    }
    if instance.notes:
        payload["notes"] = instance.notes
    return payload


def schedule_from_payload(data: dict) -> ScheduleInstance:
    time_range = data.get("timeRange") or {}
    return ScheduleInstance(
        id=data.get("_id"),
        name=data["name"],
        type=ScheduleType(data["type"]),
        staff_id=_ref_id(data.get("ptId")) or "",
        date=_parse_date(data["scheduleDate"]),
        branch_id=_ref_id(data.get("branchId")) or "",
        start_time=normalize_hhmm(data.get("startTime") or time_range.get("startTime", "")),
        end_time=normalize_hhmm(data.get("endTime") or time_range.get("endTime", "")),
        status=ScheduleStatus(data.get("status", ScheduleStatus.SCHEDULED.value)),
        max_capacity=data.get("maxCapacity", 1),
        current_bookings=data.get("currentBookings", 0),
        notes=data.get("notes"),
        is_recurring=data.get("isRecurring", False),
    )


def template_to_payload(record: TemplateRecord) -> dict:
    payload = {
        "name": record.name,
        "description": record.description,
        "type": record.type.value,
        "branchId": record.branch_id,
        "startTime": record.start_time,
        "endTime": record.end_time,
        "daysOfWeek": [Weekday.parse(d).value for d in record.days_of_week],
        "maxCapacity": record.max_capacity,
        "priority": record.priority,
    }
    if record.staff_id:
        payload["ptId"] = record.staff_id
    if record.class_id:
        payload["classId"] = record.class_id
    if record.notes:
        payload["notes"] = record.notes

    auto = record.auto_generate
    payload["autoGenerate"] = {
        "enabled": auto.enabled,
        "advanceDays": auto.advance_days,
    }
    if auto.end_date:
        payload["autoGenerate"]["endDate"] = auto.end_date.isoformat()
    return payload


def template_from_payload(data: dict) -> TemplateRecord:
    auto = data.get("autoGenerate") or {}
    return TemplateRecord(
        id=data.get("_id"),
        name=data["name"],
        description=data.get("description") or "",
        type=ScheduleType(data["type"]),
        branch_id=_ref_id(data.get("branchId")) or "",
        staff_id=_ref_id(data.get("ptId")),
        staff_name=_ref_name(data.get("ptId")),
        class_id=_ref_id(data.get("classId")),
        days_of_week=[Weekday.parse(d) for d in data.get("daysOfWeek", [])],
        start_time=normalize_hhmm(data.get("startTime", "")),
        end_time=normalize_hhmm(data.get("endTime", "")),
        notes=data.get("notes"),
        # upstream has no shifts column, the groups live in notes only
        shifts=decode(data.get("notes")),
        auto_generate=AutoGenerateSettings(
            enabled=auto.get("enabled", False),
            advance_days=auto.get("advanceDays", 7),
            end_date=_parse_date(auto.get("endDate")),
        ),
        max_capacity=data.get("maxCapacity", 1),
        priority=data.get("priority", 1),
        is_active=data.get("isActive", True),
        usage_count=data.get("usageCount", 0),
        last_used=_parse_datetime(data.get("lastUsed")),
    )


def _map_items(mapper: Callable[[dict], Any], items: Any, what: str) -> list:
    """Map upstream dicts to records; a malformed item becomes a PersistenceError."""
    try:
        return [mapper(item) for item in items]
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Upstream returned a malformed {what}: {e!r}")
        raise PersistenceError(f"Upstream API returned a malformed {what}") from e


class _UpstreamClient:
    """Shared request handling for the upstream API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.UPSTREAM_API_URL).rstrip("/")
        self.token = token
        self._client = client

    def _headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=self._headers(), **kwargs)
            else:
                async with httpx.AsyncClient(timeout=settings.UPSTREAM_TIMEOUT_SECONDS) as client:
                    response = await client.request(method, url, headers=self._headers(), **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Upstream {method} {path} failed: {e.response.status_code} - {e.response.text}")
            raise PersistenceError(f"Upstream API error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Upstream {method} {path} failed: {e}")
            raise PersistenceError(f"Upstream API unreachable: {e}") from e

        try:
            body = response.json() if response.content else {}
        except ValueError as e:
            logger.error(f"Upstream {method} {path} returned invalid JSON: {e}")
            raise PersistenceError("Upstream API returned invalid JSON") from e

        if isinstance(body, dict) and body.get("success") is False:
            message = body.get("message", "request rejected")
            logger.error(f"Upstream {method} {path} rejected: {message}")
            raise PersistenceError(message)
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body


class HttpScheduleStore(_UpstreamClient, BaseScheduleStore):

    async def create_batch(self, instances: list[ScheduleInstance]) -> list[ScheduleInstance]:
        if not instances:
            return []

        data = await self._request(
            "POST",
            "/schedules/batch",
            json={"schedules": [schedule_to_payload(i) for i in instances]},
        )
        if isinstance(data, dict):
            data = data.get("schedules", [])
        return _map_items(schedule_from_payload, data, "schedule")


class HttpTemplateStore(_UpstreamClient, BaseTemplateStore):

    async def create(self, record: TemplateRecord) -> RecordId:
        data = await self._request("POST", "/schedule-templates", json=template_to_payload(record))
        template_id = _ref_id(data)
        if not template_id:
            raise PersistenceError("Upstream API returned no template id")
        return template_id

    async def increment_usage(self, template_id: RecordId) -> None:
        await self._request("POST", f"/schedule-templates/{template_id}/increment-usage")

    async def list_by_branch(self, branch_id: str, active_only: bool = True) -> list[TemplateRecord]:
        data = await self._request(
            "GET",
            f"/schedule-templates/branch/{branch_id}",
            params={"activeOnly": "true" if active_only else "false"},
        )
        return _map_items(template_from_payload, data or [], "template")

    async def get(self, template_id: RecordId) -> Optional[TemplateRecord]:
        try:
            data = await self._request("GET", f"/schedule-templates/{template_id}")
        except PersistenceError as e:
            if isinstance(e.__cause__, httpx.HTTPStatusError) and e.__cause__.response.status_code == 404:
                return None
            raise
        if not data:
            return None
        return _map_items(template_from_payload, [data], "template")[0]
