from typing import Generator
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from staffplan.db.database import SessionLocal
from staffplan.core.security import TokenData, decode_access_token
from staffplan.services.scheduling.sql_stores import SqlScheduleStore, SqlTemplateStore
from staffplan.services.scheduling.submission import SubmissionCoordinator

security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> TokenData:
    token_data = decode_access_token(credentials.credentials)
    if token_data is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return token_data


def check_branch_access(user: TokenData, branch_id: str) -> bool:
    """Empty branch_ids in the token means access to every branch."""
    if not user.branch_ids:
        return True
    return branch_id in user.branch_ids


def require_branch_access(user: TokenData, branch_id: str) -> None:
    if not check_branch_access(user, branch_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No access to this branch")


def get_schedule_store(db: Session = Depends(get_db)) -> SqlScheduleStore:
    return SqlScheduleStore(db)


def get_template_store(
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
) -> SqlTemplateStore:
    return SqlTemplateStore(db, created_by=current_user.user_id)


def get_submission_coordinator(
    schedule_store: SqlScheduleStore = Depends(get_schedule_store),
    template_store: SqlTemplateStore = Depends(get_template_store),
) -> SubmissionCoordinator:
    return SubmissionCoordinator(schedule_store, template_store)
