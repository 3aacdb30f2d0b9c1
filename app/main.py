from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from app.api.analytics import router as analytics_router
from app.api.auth import router as auth_router
from app.api.deps import require_role, require_user_auth, require_write_access
from app.api.documents import router as documents_router
from app.api.exports import router as exports_router
from app.api.notifications import router as notifications_router
from app.api.physician_records import router as physician_records_router
from app.api.physicians import router as physicians_router
from app.api.renewals import router as renewals_router
from app.api.settings import router as settings_router
from app.api.users import router as users_router
from app.config import settings
from app.db import SessionLocal
from app.errors import register_error_handlers
from app.logging import configure_logging
from app.observability import ObservabilityMiddleware
from app.services.auth import users


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = SessionLocal()
    try:
        users.ensure_bootstrap_admin(db)
    finally:
        db.close()
    yield


app = FastAPI(title=f"{settings.brand_name} API", lifespan=lifespan)

configure_logging()
app.add_middleware(ObservabilityMiddleware)
register_error_handlers(app)


def _include_api_router(router, dependencies=None):
    app.include_router(router, dependencies=dependencies)
    app.include_router(router, prefix="/api/v1", dependencies=dependencies)


_include_api_router(auth_router)
_include_api_router(users_router, dependencies=[Depends(require_role("admin"))])
_include_api_router(settings_router, dependencies=[Depends(require_user_auth)])
_include_api_router(physicians_router, dependencies=[Depends(require_write_access)])
_include_api_router(
    physician_records_router, dependencies=[Depends(require_write_access)]
)
_include_api_router(documents_router, dependencies=[Depends(require_write_access)])
_include_api_router(renewals_router, dependencies=[Depends(require_write_access)])
_include_api_router(
    notifications_router, dependencies=[Depends(require_write_access)]
)
_include_api_router(analytics_router, dependencies=[Depends(require_user_auth)])
_include_api_router(exports_router, dependencies=[Depends(require_user_auth)])


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
