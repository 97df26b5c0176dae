import math
from typing import Optional, Union
from sqlmodel import Session, select
from loguru import logger
from civicdesk.core.config import settings
from civicdesk.models.base import utc_now
from civicdesk.models.building import BuildingAtRisk
from civicdesk.models.enums import (
    BUILDINGS_TABLE,
    ISSUES_TABLE,
    TABLE_FOR_KIND,
    BuildingStatus,
    ChangeType,
    IssueStatus,
    ReportKind,
)
from civicdesk.models.issue import Issue
from civicdesk.schemas.report import BuildingCreate, BuildingOut, IssueCreate, IssueOut
from civicdesk.services.change_feed import change_feed

Report = Union[Issue, BuildingAtRisk]


def clean_text(value: Optional[str], max_len: int) -> str:
    if not isinstance(value, str):
        return ''
    return value.strip()[:max_len]


def clean_coordinate(value: Optional[float], bound: float) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < -bound or number > bound:
        return None
    return number


def _clean_thumbnail(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return str(value)[: settings.THUMBNAIL_MAX_LEN]


def create_issue(session: Session, user_id: str, payload: IssueCreate) -> Issue:
    title = clean_text(payload.title, settings.TITLE_MAX_LEN)
    description = clean_text(payload.description, settings.DESCRIPTION_MAX_LEN)
    category = clean_text(payload.category, settings.CATEGORY_MAX_LEN)
    if not title or not description or not category:
        raise ValueError('Missing required fields: title, description, and category are required')
    record = Issue(
        title=title,
        description=description,
        category=category,
        latitude=clean_coordinate(payload.latitude, 90),
        longitude=clean_coordinate(payload.longitude, 180),
        thumbnail=_clean_thumbnail(payload.thumbnail),
        reported_by=user_id,
        status=IssueStatus.PENDING.value,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    logger.info('issue.created', issue_id=record.id, reported_by=user_id, category=category)
    change_feed.publish(ISSUES_TABLE, ChangeType.INSERT, record.id)
    return record


def create_building(session: Session, user_id: str, payload: BuildingCreate) -> BuildingAtRisk:
    title = clean_text(payload.title, settings.TITLE_MAX_LEN)
    description = clean_text(payload.description, settings.DESCRIPTION_MAX_LEN)
    if not title:
        raise ValueError('Title is required')
    if not description:
        raise ValueError('Description is required')
    record = BuildingAtRisk(
        title=title,
        description=description,
        assigned_to=payload.assigned_to or None,
        latitude=clean_coordinate(payload.latitude, 90),
        longitude=clean_coordinate(payload.longitude, 180),
        thumbnail=_clean_thumbnail(payload.thumbnail),
        reported_by=user_id,
        status=BuildingStatus.PENDING.value,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    logger.info('building.created', building_id=record.id, reported_by=user_id)
    change_feed.publish(BUILDINGS_TABLE, ChangeType.INSERT, record.id)
    return record


def _model_for(kind: ReportKind) -> type:
    return Issue if kind == ReportKind.ISSUE else BuildingAtRisk


def list_reports(
    session: Session,
    kind: ReportKind,
    reported_by: Optional[str] = None,
    status: Optional[str] = None,
    include_dismissed: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[Report]:
    model = _model_for(kind)
    statement = select(model)
    if not include_dismissed:
        statement = statement.where(model.dismissed_at.is_(None))
    if reported_by is not None:
        statement = statement.where(model.reported_by == reported_by)
    if status is not None:
        statement = statement.where(model.status == status)
    statement = statement.order_by(model.created_at.desc())
    if offset:
        statement = statement.offset(offset)
    if limit is not None:
        statement = statement.limit(limit)
    return list(session.exec(statement).all())


def get_report(
    session: Session,
    kind: ReportKind,
    report_id: Union[int, str],
    include_dismissed: bool = False,
) -> Optional[Report]:
    model = _model_for(kind)
    record = session.exec(select(model).where(model.id == report_id)).first()
    if record and record.dismissed_at is not None and not include_dismissed:
        return None
    return record


def update_report(
    session: Session,
    kind: ReportKind,
    record: Report,
    changes: dict,
) -> Report:
    if 'status' in changes:
        record.status = changes['status']
    if 'assigned_to' in changes:
        record.assigned_to = changes['assigned_to']
    session.add(record)
    session.commit()
    session.refresh(record)
    logger.info('report.updated', kind=kind.value, report_id=record.id, changes=changes)
    change_feed.publish(TABLE_FOR_KIND[kind], ChangeType.UPDATE, record.id)
    return record


def dismiss_report(session: Session, kind: ReportKind, record: Report) -> Report:
    """Soft delete; callers treat an already-dismissed row as success."""
    if record.dismissed_at is not None:
        return record
    record.dismissed_at = utc_now()
    session.add(record)
    session.commit()
    session.refresh(record)
    logger.info('report.dismissed', kind=kind.value, report_id=record.id)
    change_feed.publish(TABLE_FOR_KIND[kind], ChangeType.DELETE, record.id)
    return record


def to_issue_out(record: Issue) -> IssueOut:
    return IssueOut(
        id=record.id,
        title=record.title,
        description=record.description,
        category=record.category,
        reported_by=record.reported_by,
        assigned_to=record.assigned_to,
        status=record.status,
        latitude=record.latitude,
        longitude=record.longitude,
        thumbnail=record.thumbnail,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def to_building_out(record: BuildingAtRisk) -> BuildingOut:
    return BuildingOut(
        id=record.id,
        title=record.title,
        building_name=record.title or 'Unknown Building',
        description=record.description,
        reported_by=record.reported_by,
        assigned_to=record.assigned_to,
        status=record.status,
        latitude=record.latitude,
        longitude=record.longitude,
        thumbnail=record.thumbnail,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def to_report_out(kind: ReportKind, record: Report) -> Union[IssueOut, BuildingOut]:
    if kind == ReportKind.ISSUE:
        return to_issue_out(record)
    return to_building_out(record)
