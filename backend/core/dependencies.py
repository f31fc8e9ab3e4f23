"""Request-scoped storage managers for FastAPI routes."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from core.security import get_client_ip
from database import get_db
from storage.baby_manager import BabyManager
from storage.cohort_manager import CohortManager
from storage.content_manager import ContentManager
from storage.user_manager import UserManager


def get_user_manager(request: Request, db: Session = Depends(get_db)) -> UserManager:
    return UserManager(db, request_ip=get_client_ip(request))


def get_cohort_manager(request: Request, db: Session = Depends(get_db)) -> CohortManager:
    return CohortManager(db, request_ip=get_client_ip(request))


def get_content_manager(db: Session = Depends(get_db)) -> ContentManager:
    return ContentManager(db)


def get_baby_manager(request: Request, db: Session = Depends(get_db)) -> BabyManager:
    return BabyManager(db, request_ip=get_client_ip(request))


# Type aliases for dependency injection
UserManagerDep = Annotated[UserManager, Depends(get_user_manager)]
CohortManagerDep = Annotated[CohortManager, Depends(get_cohort_manager)]
ContentManagerDep = Annotated[ContentManager, Depends(get_content_manager)]
BabyManagerDep = Annotated[BabyManager, Depends(get_baby_manager)]
