from contextlib import asynccontextmanager
from uuid import uuid4
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from civicdesk.api.v1.router import api_router
from civicdesk.core.config import VERSION, settings
from civicdesk.core.logging import configure_logging
from civicdesk.db.init_db import init_db

configure_logging(settings.LOG_LEVEL)

REQUEST_ID_HEADER = 'X-Request-ID'


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    logger.info('app.startup', project=settings.PROJECT_NAME, version=VERSION, env=settings.ENV)
    yield
    logger.info('app.shutdown', project=settings.PROJECT_NAME)

app = FastAPI(title=settings.PROJECT_NAME, version=VERSION, debug=settings.DEBUG, lifespan=lifespan)

allow_origins = settings.CORS_ORIGINS
allow_credentials = '*' not in allow_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=['*'],
    allow_headers=['*'],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware('http')
async def bind_request_id(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex[:8]
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        if response.status_code >= 400:
            logger.info('http.error', method=request.method, path=request.url.path, status=response.status_code)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


app.include_router(api_router)
