import json
import pytest
from datetime import date

import httpx

from staffplan.services.scheduling.availability import toggle_shift
from staffplan.services.scheduling.errors import PersistenceError
from staffplan.services.scheduling.expander import expand_schedule
from staffplan.services.scheduling.http_stores import (
    HttpScheduleStore,
    HttpTemplateStore,
    template_from_payload,
    template_to_payload,
)
from staffplan.services.scheduling.templates import build_template_from_draft
from staffplan.services.scheduling.types import AutoGenerateSettings, ScheduleType, Weekday

BASE_URL = "http://upstream.test/api"


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHttpScheduleStore:
    @pytest.mark.asyncio
    async def test_create_batch_posts_camel_case(self, draft, today):
        toggle_shift(draft, "MONDAY", "MORNING")
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            body = json.loads(request.content)
            seen["body"] = body
            created = [{**s, "_id": f"sch{n}", "branchId": {"_id": s["branchId"], "name": "Main"}}
                       for n, s in enumerate(body["schedules"])]
            return httpx.Response(201, json={"success": True, "data": created})

        async with make_client(handler) as client:
            store = HttpScheduleStore(base_url=BASE_URL, token="tok", client=client)
            created = await store.create_batch(expand_schedule(draft, today))

        assert seen["url"] == f"{BASE_URL}/schedules/batch"
        assert seen["auth"] == "Bearer tok"
        schedule = seen["body"]["schedules"][0]
        assert schedule["ptId"] == "staff-1"
        assert schedule["scheduleDate"] == "2025-06-02"
        assert (schedule["startTime"], schedule["endTime"]) == ("08:00", "12:00")
        assert "notes" not in schedule

        assert created[0].id == "sch0"
        assert created[0].branch_id == "branch-1"
        assert created[0].date == date(2025, 6, 2)

    @pytest.mark.asyncio
    async def test_empty_batch_makes_no_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        async with make_client(handler) as client:
            assert await HttpScheduleStore(base_url=BASE_URL, client=client).create_batch([]) == []

    @pytest.mark.asyncio
    async def test_server_error_wrapped(self, draft, today):
        toggle_shift(draft, "MONDAY", "MORNING")

        def handler(request):
            return httpx.Response(500, json={"success": False, "message": "boom"})

        async with make_client(handler) as client:
            store = HttpScheduleStore(base_url=BASE_URL, client=client)
            with pytest.raises(PersistenceError, match="500"):
                await store.create_batch(expand_schedule(draft, today))

    @pytest.mark.asyncio
    async def test_network_error_wrapped(self, draft, today):
        toggle_shift(draft, "MONDAY", "MORNING")

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            store = HttpScheduleStore(base_url=BASE_URL, client=client)
            with pytest.raises(PersistenceError):
                await store.create_batch(expand_schedule(draft, today))

    @pytest.mark.asyncio
    async def test_rejected_envelope_wrapped(self, draft, today):
        toggle_shift(draft, "MONDAY", "MORNING")

        def handler(request):
            return httpx.Response(200, json={"success": False, "message": "Staff is busy"})

        async with make_client(handler) as client:
            store = HttpScheduleStore(base_url=BASE_URL, client=client)
            with pytest.raises(PersistenceError, match="Staff is busy"):
                await store.create_batch(expand_schedule(draft, today))

    @pytest.mark.asyncio
    async def test_non_json_body_wrapped(self, draft, today):
        toggle_shift(draft, "MONDAY", "MORNING")

        def handler(request):
            return httpx.Response(200, text="not json")

        async with make_client(handler) as client:
            store = HttpScheduleStore(base_url=BASE_URL, client=client)
            with pytest.raises(PersistenceError, match="invalid JSON"):
                await store.create_batch(expand_schedule(draft, today))

    @pytest.mark.asyncio
    async def test_incomplete_schedule_wrapped(self, draft, today):
        toggle_shift(draft, "MONDAY", "MORNING")

        def handler(request):
            return httpx.Response(201, json={"success": True, "data": [{"_id": "sch0", "type": "FREE_TIME"}]})

        async with make_client(handler) as client:
            store = HttpScheduleStore(base_url=BASE_URL, client=client)
            with pytest.raises(PersistenceError, match="malformed schedule"):
                await store.create_batch(expand_schedule(draft, today))

    @pytest.mark.asyncio
    async def test_seconds_dropped_from_times(self, draft, today):
        toggle_shift(draft, "MONDAY", "MORNING")

        def handler(request):
            body = json.loads(request.content)
            created = [{**s, "_id": "sch0", "startTime": "08:00:00", "endTime": "12:00:00"}
                       for s in body["schedules"]]
            return httpx.Response(201, json={"success": True, "data": created})

        async with make_client(handler) as client:
            store = HttpScheduleStore(base_url=BASE_URL, client=client)
            created = await store.create_batch(expand_schedule(draft, today))

        assert (created[0].start_time, created[0].end_time) == ("08:00", "12:00")


class TestHttpTemplateStore:
    @pytest.mark.asyncio
    async def test_create_returns_upstream_id(self, draft):
        toggle_shift(draft, "MONDAY", "MORNING")
        draft.template.name = "Front desk week"
        draft.template.auto_generate = AutoGenerateSettings(True, 10, date(2025, 8, 1))
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"success": True, "data": {"_id": "tpl1"}})

        async with make_client(handler) as client:
            template_id = await HttpTemplateStore(base_url=BASE_URL, client=client).create(
                build_template_from_draft(draft)
            )

        assert template_id == "tpl1"
        body = seen["body"]
        assert body["daysOfWeek"] == ["MONDAY"]
        assert body["ptId"] == "staff-1"
        assert body["autoGenerate"] == {"enabled": True, "advanceDays": 10, "endDate": "2025-08-01"}
        assert json.loads(body["notes"])["multipleShifts"] is True

    @pytest.mark.asyncio
    async def test_increment_usage(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            return httpx.Response(200, json={"success": True, "data": {"_id": "tpl1", "usageCount": 3}})

        async with make_client(handler) as client:
            await HttpTemplateStore(base_url=BASE_URL, client=client).increment_usage("tpl1")

        assert seen == {"method": "POST", "path": "/api/schedule-templates/tpl1/increment-usage"}

    @pytest.mark.asyncio
    async def test_list_by_branch(self):
        seen = {}
        upstream = {
            "_id": "tpl1",
            "name": "Mornings",
            "type": "PERSONAL_TRAINING",
            "branchId": {"_id": "branch-1", "branchName": "Main"},
            "ptId": {"_id": "staff-9", "fullName": "Alex Tran"},
            "daysOfWeek": ["MONDAY", "TUESDAY"],
            "startTime": "07:00",
            "endTime": "11:00",
            "notes": (
                '{"multipleShifts":true,"shifts":[{"shiftType":"MORNING","startTime":"07:00",'
                '"endTime":"11:00","daysOfWeek":["MONDAY","TUESDAY"]}]}'
            ),
            "autoGenerate": {"enabled": False, "advanceDays": 7},
            "isActive": True,
            "usageCount": 4,
            "lastUsed": "2025-05-01T08:00:00.000Z",
        }

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["path"] = request.url.path
            return httpx.Response(200, json={"success": True, "data": [upstream]})

        async with make_client(handler) as client:
            templates = await HttpTemplateStore(base_url=BASE_URL, client=client).list_by_branch(
                "branch-1", active_only=False
            )

        assert seen["path"] == "/api/schedule-templates/branch/branch-1"
        assert seen["params"] == {"activeOnly": "false"}
        template = templates[0]
        assert template.id == "tpl1"
        assert template.branch_id == "branch-1"
        assert template.staff_id == "staff-9"
        assert template.staff_name == "Alex Tran"
        assert template.type == ScheduleType.PERSONAL_TRAINING
        assert template.shifts[0].days_of_week == [Weekday.MONDAY, Weekday.TUESDAY]
        assert template.usage_count == 4
        assert template.last_used.year == 2025

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        def handler(request):
            return httpx.Response(404, json={"success": False, "message": "Not found"})

        async with make_client(handler) as client:
            assert await HttpTemplateStore(base_url=BASE_URL, client=client).get("nope") is None

    @pytest.mark.asyncio
    async def test_get_malformed_template_wrapped(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": {"_id": "tpl1", "type": "NAPPING"}})

        async with make_client(handler) as client:
            with pytest.raises(PersistenceError, match="malformed template"):
                await HttpTemplateStore(base_url=BASE_URL, client=client).get("tpl1")


class TestPayloadMapping:
    def test_template_payload_omits_empty_refs(self, draft):
        draft.staff_id = ""
        draft.template.name = "Unassigned"
        payload = template_to_payload(build_template_from_draft(draft))
        assert "ptId" not in payload
        assert "classId" not in payload
        assert "notes" not in payload
        assert payload["autoGenerate"] == {"enabled": False, "advanceDays": 7}

    def test_template_from_plain_ids(self):
        template = template_from_payload({
            "_id": "tpl2",
            "name": "Legacy",
            "type": "FREE_TIME",
            "branchId": "branch-1",
            "daysOfWeek": ["SATURDAY"],
            "startTime": "10:00",
            "endTime": "16:00",
            "notes": "Bring the keys",
        })
        assert template.branch_id == "branch-1"
        assert template.staff_id is None
        assert template.shifts is None
        assert template.auto_generate.advance_days == 7
