import pytest
from datetime import date

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from staffplan.db.database import Base
from staffplan.services.scheduling.errors import PersistenceError
from staffplan.services.scheduling.stores import BaseScheduleStore, BaseTemplateStore
from staffplan.services.scheduling.types import (
    ScheduleDraft,
    ScheduleType,
    TemplateRecord,
    Weekday,
)

# fixed Monday used as the anchor date across tests
ANCHOR_MONDAY = date(2025, 6, 2)
# "today" for tests: a couple of weeks before the anchor
TODAY = date(2025, 5, 20)


@pytest.fixture
def anchor_monday() -> date:
    return ANCHOR_MONDAY


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def draft() -> ScheduleDraft:
    # required fields set, no days enabled yet
    return ScheduleDraft(
        title="Front Desk",
        staff_id="staff-1",
        branch_id="branch-1",
        schedule_date=ANCHOR_MONDAY,
        type=ScheduleType.FREE_TIME,
    )


@pytest.fixture
def multi_shift_template() -> TemplateRecord:
    return TemplateRecord(
        id=7,
        name="Weekday mornings",
        type=ScheduleType.PERSONAL_TRAINING,
        branch_id="branch-2",
        staff_id="staff-9",
        staff_name="Alex Tran",
        days_of_week=[Weekday.MONDAY, Weekday.TUESDAY],
        start_time="07:00",
        end_time="11:00",
        notes=(
            '{"multipleShifts":true,"shifts":[{"shiftType":"MORNING","startTime":"07:00",'
            '"endTime":"11:00","daysOfWeek":["MONDAY","TUESDAY"]}]}'
        ),
    )


@pytest.fixture
def legacy_template() -> TemplateRecord:
    return TemplateRecord(
        id=3,
        name="Weekend cover",
        type=ScheduleType.FREE_TIME,
        branch_id="branch-1",
        days_of_week=[Weekday.SATURDAY, Weekday.SUNDAY],
        start_time="10:00",
        end_time="16:00",
        notes="Bring the keys",
    )


class InMemoryScheduleStore(BaseScheduleStore):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.batches: list[list] = []

    async def create_batch(self, instances):
        if self.fail:
            raise PersistenceError("schedule store unavailable")
        self.batches.append(list(instances))
        for n, instance in enumerate(instances, start=1):
            instance.id = n
        return list(instances)


class InMemoryTemplateStore(BaseTemplateStore):
    def __init__(self, fail_create: bool = False, fail_increment: bool = False):
        self.fail_create = fail_create
        self.fail_increment = fail_increment
        self.templates: dict[int, TemplateRecord] = {}
        self.increments: list = []

    async def create(self, record):
        if self.fail_create:
            raise PersistenceError("template store unavailable")
        record.id = len(self.templates) + 100
        self.templates[record.id] = record
        return record.id

    async def increment_usage(self, template_id):
        if self.fail_increment:
            raise PersistenceError("usage update failed")
        self.increments.append(template_id)

    async def list_by_branch(self, branch_id, active_only=True):
        return [
            t for t in self.templates.values()
            if t.branch_id == branch_id and (t.is_active or not active_only)
        ]

    async def get(self, template_id):
        return self.templates.get(template_id)


@pytest.fixture
def schedule_store() -> InMemoryScheduleStore:
    return InMemoryScheduleStore()


@pytest.fixture
def template_store() -> InMemoryTemplateStore:
    return InMemoryTemplateStore()


@pytest.fixture
def failing_schedule_store() -> InMemoryScheduleStore:
    return InMemoryScheduleStore(fail=True)


@pytest.fixture
def failing_template_store() -> InMemoryTemplateStore:
    return InMemoryTemplateStore(fail_create=True)


@pytest.fixture
def failing_usage_store() -> InMemoryTemplateStore:
    return InMemoryTemplateStore(fail_increment=True)


@pytest.fixture
def db_engine():
    # imported for side effects: registers models on Base.metadata
    from staffplan.db import models  # noqa: F401

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
