from typing import Union
from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlmodel import Session
from civicdesk.db.session import get_session
from civicdesk.models.user import User
from civicdesk.schemas.report import ClassifyOut, ClassifyRequest, DismissOut
from civicdesk.core.validation import InvalidReportId, InvalidReportStatus, parse_report_id, validate_status
from civicdesk.services.report_service import dismiss_report, get_report, to_report_out, update_report
from civicdesk.services.role_service import require_employee

router = APIRouter(tags=['classify'])


@router.post('/classify', response_model=Union[ClassifyOut, DismissOut])
def classify_report_endpoint(
    payload: ClassifyRequest,
    session: Session = Depends(get_session),
    user: User = Depends(require_employee),
) -> Union[ClassifyOut, DismissOut]:
    try:
        report_id = parse_report_id(payload.type, payload.id)
    except InvalidReportId as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    if payload.action == 'dismiss':
        record = get_report(session, payload.type, report_id, include_dismissed=True)
        if record:
            dismiss_report(session, payload.type, record)
        else:
            logger.info('classify.dismiss.missing', kind=payload.type.value, report_id=report_id)
        return DismissOut(type=payload.type, id=report_id)

    changes = payload.model_dump(include={'status', 'assigned_to'}, exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Nothing to update')
    if 'status' in changes:
        try:
            changes['status'] = validate_status(payload.type, changes['status'])
        except InvalidReportStatus as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    record = get_report(session, payload.type, report_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Record not found')
    record = update_report(session, payload.type, record, changes)
    logger.info('classify.updated', kind=payload.type.value, report_id=report_id, user_id=user.id)
    return ClassifyOut(type=payload.type, data=to_report_out(payload.type, record))
