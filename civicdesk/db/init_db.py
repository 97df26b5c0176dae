from sqlmodel import SQLModel
from civicdesk.db.session import engine
from civicdesk.core.config import settings
from civicdesk.models import (  # noqa: F401
    user,
    user_role,
    refresh_token,
    issue,
    building,
)


def init_db(drop_all: bool = False) -> None:
    if drop_all:
        SQLModel.metadata.drop_all(engine)
    if settings.DB_URL.startswith('sqlite') or settings.ENV != 'production' or settings.AUTO_CREATE_TABLES:
        SQLModel.metadata.create_all(engine)
