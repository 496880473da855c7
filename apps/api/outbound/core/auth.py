from fastapi import Depends
from sqlalchemy.orm import Session
from starlette.requests import Request

from outbound.core.config import get_settings
from outbound.core.database import get_db
from outbound.platform.security.context import Principal
from outbound.platform.security.gate import AuthGate, make_account_status_lookup
from outbound.platform.security.tokens import TokenVerifier
from outbound.platform.settings.cache import SettingsCache, get_settings_cache


def get_token_verifier() -> TokenVerifier:
    settings = get_settings()
    return TokenVerifier(settings.jwt_secret, settings.jwt_algorithm)


def get_auth_gate(
    db: Session = Depends(get_db),
    settings_cache: SettingsCache = Depends(get_settings_cache),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> AuthGate:
    return AuthGate(verifier, settings_cache, make_account_status_lookup(db))


def get_principal(request: Request, gate: AuthGate = Depends(get_auth_gate)) -> Principal:
    principal = gate.authenticate(request.headers.get("authorization"))
    # read back by the audit middleware once the response is ready
    request.state.principal = principal
    return principal
