"""
Dépendances FastAPI d'authentification : contexte de session et contrôle de rôle.
"""

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.auth.session import SessionContext
from app.database import get_db
from app.services import auth_service

security = HTTPBearer(auto_error=False)


def get_session_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> SessionContext:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentification requise.")
    try:
        return auth_service.resolve_session(db, credentials.credentials)
    except PermissionError as e:
        raise HTTPException(status_code=401, detail=str(e))


def require_roles(*roles: str):
    """Retourne une dépendance qui refuse (403) les rôles non listés."""

    def _check(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
        if not ctx.has_role(*roles):
            raise HTTPException(status_code=403, detail="Accès refusé pour ce rôle.")
        return ctx

    return _check
