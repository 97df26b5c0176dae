from fastapi import APIRouter
from civicdesk.api.v1 import health, auth, issues, buildings, classify, realtime
from civicdesk.core.config import settings

api_router = APIRouter(prefix=settings.API_V1_PREFIX)

api_router.include_router(health.router, tags=['health'])
api_router.include_router(auth.router)
api_router.include_router(issues.router)
api_router.include_router(buildings.router)
api_router.include_router(classify.router)
api_router.include_router(realtime.router)
