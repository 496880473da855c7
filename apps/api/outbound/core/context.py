from fastapi import Depends
from sqlalchemy.orm import Session
from starlette.requests import Request

from outbound.context import get_correlation_id
from outbound.core.auth import get_principal
from outbound.core.database import get_db
from outbound.platform.security.context import Principal, RequestContext
from outbound.platform.security.identity import identity_resolver


def get_request_context(
    request: Request,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> RequestContext:
    identity = identity_resolver.resolve(db, principal)
    return RequestContext(
        principal=principal,
        identity=identity,
        correlation_id=get_correlation_id() or getattr(request.state, "correlation_id", None),
    )
