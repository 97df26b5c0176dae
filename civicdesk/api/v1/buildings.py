from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session
from civicdesk.db.session import get_session
from civicdesk.models.enums import ReportKind
from civicdesk.models.user import User
from civicdesk.schemas.report import BuildingCreate, BuildingOut
from civicdesk.services.auth_service import get_current_user, get_optional_user
from civicdesk.services.report_service import (
    create_building,
    get_report,
    list_reports,
    to_building_out,
)
from civicdesk.core.validation import InvalidReportId, parse_building_id

router = APIRouter(prefix='/buildings', tags=['buildings'])


@router.get('', response_model=list[BuildingOut])
def list_buildings_endpoint(
    mine: bool = False,
    status_filter: Optional[str] = Query(default=None, alias='status'),
    limit: Optional[int] = None,
    offset: int = 0,
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
) -> list[BuildingOut]:
    if mine and user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Not authenticated')
    records = list_reports(
        session,
        ReportKind.BUILDING,
        reported_by=user.id if mine else None,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    return [to_building_out(record) for record in records]


@router.get('/{building_id}', response_model=BuildingOut)
def get_building_endpoint(building_id: str, session: Session = Depends(get_session)) -> BuildingOut:
    try:
        parsed = parse_building_id(building_id)
    except InvalidReportId as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    record = get_report(session, ReportKind.BUILDING, parsed)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Building report not found')
    return to_building_out(record)


@router.post('', response_model=BuildingOut, status_code=status.HTTP_201_CREATED)
def create_building_endpoint(
    payload: BuildingCreate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> BuildingOut:
    try:
        record = create_building(session, user.id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return to_building_out(record)
