from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session
from civicdesk.db.session import get_session
from civicdesk.models.enums import ReportKind
from civicdesk.models.user import User
from civicdesk.schemas.report import DismissOut, IssueCreate, IssueOut
from civicdesk.services.auth_service import get_current_user, get_optional_user
from civicdesk.services.report_service import (
    create_issue,
    dismiss_report,
    get_report,
    list_reports,
    to_issue_out,
)
from civicdesk.core.validation import InvalidReportId, parse_issue_id
from civicdesk.services.role_service import require_employee

router = APIRouter(prefix='/issues', tags=['issues'])


def _parse_id(raw: str) -> int:
    try:
        return parse_issue_id(raw)
    except InvalidReportId as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get('', response_model=list[IssueOut])
def list_issues_endpoint(
    mine: bool = False,
    status_filter: Optional[str] = Query(default=None, alias='status'),
    limit: Optional[int] = None,
    offset: int = 0,
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
) -> list[IssueOut]:
    if mine and user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Not authenticated')
    records = list_reports(
        session,
        ReportKind.ISSUE,
        reported_by=user.id if mine else None,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    return [to_issue_out(record) for record in records]


@router.get('/{issue_id}', response_model=IssueOut)
def get_issue_endpoint(issue_id: str, session: Session = Depends(get_session)) -> IssueOut:
    record = get_report(session, ReportKind.ISSUE, _parse_id(issue_id))
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Issue not found')
    return to_issue_out(record)


@router.post('', response_model=IssueOut, status_code=status.HTTP_201_CREATED)
def create_issue_endpoint(
    payload: IssueCreate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> IssueOut:
    try:
        record = create_issue(session, user.id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return to_issue_out(record)


@router.post('/{issue_id}/dismiss', response_model=DismissOut)
def dismiss_issue_endpoint(
    issue_id: str,
    session: Session = Depends(get_session),
    _: User = Depends(require_employee),
) -> DismissOut:
    parsed = _parse_id(issue_id)
    record = get_report(session, ReportKind.ISSUE, parsed, include_dismissed=True)
    if record:
        dismiss_report(session, ReportKind.ISSUE, record)
    return DismissOut(type=ReportKind.ISSUE, id=parsed)
