from typing import Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field
from civicdesk.models.enums import ReportKind


class IssueCreate(BaseModel):
    title: str
    description: str
    category: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    thumbnail: Optional[str] = None


class BuildingCreate(BaseModel):
    title: str
    description: str
    assigned_to: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    thumbnail: Optional[str] = None


class ReportOut(BaseModel):
    title: str
    description: str
    reported_by: str
    assigned_to: Optional[str] = None
    status: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    thumbnail: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class IssueOut(ReportOut):
    id: int
    category: str


class BuildingOut(ReportOut):
    id: str
    building_name: str


class ClassifyRequest(BaseModel):
    type: ReportKind
    id: Union[int, str]
    status: Optional[str] = None
    assigned_to: Optional[str] = None
    action: Optional[Literal['dismiss']] = None


class DismissOut(BaseModel):
    status: str = 'ok'
    action: str = 'dismissed'
    type: ReportKind
    id: Union[int, str]


class ClassifyOut(BaseModel):
    type: ReportKind
    data: Union[IssueOut, BuildingOut] = Field(union_mode='left_to_right')
