from typing import Optional
from sqlmodel import Field, SQLModel
from civicdesk.models.base import ReportFields, TimestampModel


class Issue(ReportFields, TimestampModel, SQLModel, table=True):
    __tablename__ = 'issues'

    id: Optional[int] = Field(default=None, primary_key=True)
    category: str = Field(index=True)
