import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from staffplan.api.routes import schedule_templates, schedules
from staffplan.core.config import settings
from staffplan.db.database import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="StaffPlan API", version="0.1.0", lifespan=lifespan)

app.include_router(schedules.router, prefix="/api/v1")
app.include_router(schedule_templates.router, prefix="/api/v1")


@app.get("/health")
def health_check():
    return {"status": "ok"}
