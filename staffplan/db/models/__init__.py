from staffplan.db.database import Base

# Import models
from staffplan.db.models.schedules import Schedules
from staffplan.db.models.schedule_templates import ScheduleTemplates

__all__ = [
    "Base",
    # Models
    "Schedules",
    "ScheduleTemplates",
]
