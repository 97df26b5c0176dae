from sqlmodel import SQLModel
from civicdesk.models.base import IDModel, ReportFields, TimestampModel


class BuildingAtRisk(IDModel, ReportFields, TimestampModel, SQLModel, table=True):
    __tablename__ = 'buildings_at_risk'
