from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session

from app.business_config import BusinessConfig, load_business_config
from app.db import get_session


def session_dep() -> Generator[Session, None, None]:
    db = get_session()
    try:
        yield db
    finally:
        db.close()


def config_dep() -> BusinessConfig:
    return load_business_config()
