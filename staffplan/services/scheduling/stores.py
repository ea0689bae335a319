"""
Store abstractions consumed by the submission flow.
Concrete stores: sql_stores (local database) and http_stores (upstream REST API).
"""

from abc import ABC, abstractmethod
from typing import Optional

from .types import RecordId, ScheduleInstance, TemplateRecord


class BaseScheduleStore(ABC):
    """Persists expanded schedules."""

    @abstractmethod
    async def create_batch(self, instances: list[ScheduleInstance]) -> list[ScheduleInstance]:
        """
        Persist all instances in one call, all or nothing.
        Returns the stored instances (with ids). Raises PersistenceError.
        """
        ...


class BaseTemplateStore(ABC):
    """Persists and serves schedule templates."""

    @abstractmethod
    async def create(self, record: TemplateRecord) -> RecordId:
        """Store a new template, return its id. Raises PersistenceError."""
        ...

    @abstractmethod
    async def increment_usage(self, template_id: RecordId) -> None:
        ...

    @abstractmethod
    async def list_by_branch(self, branch_id: str, active_only: bool = True) -> list[TemplateRecord]:
        ...

    @abstractmethod
    async def get(self, template_id: RecordId) -> Optional[TemplateRecord]:
        ...
