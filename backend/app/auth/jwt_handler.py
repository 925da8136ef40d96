"""
Émission et vérification des jetons JWT d'accès.
Le jeton porte l'utilisateur (sub) et la session ouverte (sid) pour permettre la déconnexion.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from app.config import settings


def create_access_token(
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    expires_minutes: Optional[int] = None,
) -> str:
    expire_minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "iat": now,
        "exp": now + timedelta(minutes=expire_minutes),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Décode le jeton. Lève jwt.PyJWTError si la signature ou l'expiration est invalide."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
