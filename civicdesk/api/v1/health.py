from fastapi import APIRouter
from civicdesk.core.config import VERSION

router = APIRouter()


@router.get('/health')
def health() -> dict:
    return {'status': 'ok', 'version': VERSION}
