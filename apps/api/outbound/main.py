from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from outbound.api.routes import router as api_router
from outbound.core.config import get_settings
from outbound.core.database import SessionLocal
from outbound.errors import register_exception_handlers
from outbound.logging import configure_logging
from outbound.middleware.audit import AuditMiddleware
from outbound.middleware.correlation_id import CorrelationIdMiddleware
from outbound.middleware.request_logging import RequestLoggingMiddleware
from outbound.platform.audit.recorder import AuditRecorder, SqlAlchemyAuditWriter


configure_logging()
logger = logging.getLogger("outbound.lifecycle")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("service.started", extra={"reason": settings.app_env})
    yield
    logger.info("service.stopped")


app = FastAPI(title="Outbound Impact API", version="0.1.0", lifespan=lifespan)
app.state.audit_recorder = AuditRecorder(SqlAlchemyAuditWriter(SessionLocal))
register_exception_handlers(app)
app.add_middleware(AuditMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.include_router(api_router)
