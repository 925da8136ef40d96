"""
Service d'authentification : inscription, connexion, déconnexion et résolution
du contexte de session à partir d'un jeton bearer.
"""

import logging
import uuid
from datetime import datetime, timezone

import jwt
from passlib.hash import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth import jwt_handler
from app.auth.session import SessionContext
from app.models.profile import Profile
from app.models.user import AuthSession, User
from app.schemas.auth import SignInRequest, SignUpRequest, TokenResponse
from app.schemas.notification import NotificationDraft
from app.schemas.profile import ProfileResponse
from app.services import notification_service

logger = logging.getLogger(__name__)


def sign_up(db: Session, data: SignUpRequest) -> TokenResponse:
    """
    Crée le compte (users), le profil (profiles), la notification de bienvenue
    et ouvre une première session. Tout est commité en une seule transaction.
    """
    email = data.email.lower()
    existing = db.execute(select(User).where(User.email == email)).scalar()
    if existing:
        raise ValueError("Un compte existe déjà avec cet email.")

    user = User(id=uuid.uuid4(), email=email, password_hash=bcrypt.hash(data.password))
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise ValueError("Un compte existe déjà avec cet email.")

    profile = Profile(
        id=user.id,
        first_name=data.first_name,
        last_name=data.last_name,
        email=email,
        role=data.role,
        student_id=data.student_id,
        onboarding_completed=False,
    )
    db.add(profile)
    db.flush()

    notification_service.notify(db, [
        NotificationDraft(
            user_id=user.id,
            title="Bienvenue sur EduTrack !",
            message="Merci de nous avoir rejoints. Commencez par explorer votre tableau de bord.",
            type="welcome",
        )
    ])

    auth_session = AuthSession(id=uuid.uuid4(), user_id=user.id)
    db.add(auth_session)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Un compte existe déjà avec cet email.")
    db.refresh(profile)

    logger.info("Compte créé : %s (%s)", user.id, data.role)
    return TokenResponse(
        access_token=jwt_handler.create_access_token(user.id, auth_session.id),
        profile=ProfileResponse.model_validate(profile),
    )


def sign_in(db: Session, data: SignInRequest) -> TokenResponse:
    """Vérifie les identifiants et ouvre une nouvelle session."""
    user = db.execute(select(User).where(User.email == data.email.lower())).scalar()
    if user is None or not bcrypt.verify(data.password, user.password_hash):
        raise PermissionError("Email ou mot de passe incorrect.")

    profile = db.get(Profile, user.id)
    if profile is None:
        raise PermissionError("Profil introuvable pour ce compte.")

    auth_session = AuthSession(id=uuid.uuid4(), user_id=user.id)
    db.add(auth_session)
    user.last_login = datetime.now(timezone.utc).replace(tzinfo=None)
    db.commit()

    logger.info("Connexion : %s (session %s)", user.id, auth_session.id)
    return TokenResponse(
        access_token=jwt_handler.create_access_token(user.id, auth_session.id),
        profile=ProfileResponse.model_validate(profile),
    )


def sign_out(db: Session, ctx: SessionContext) -> None:
    """Révoque la session : le jeton associé est refusé dès la requête suivante."""
    auth_session = db.get(AuthSession, ctx.session_id)
    if auth_session is None or auth_session.revoked_at is not None:
        return
    auth_session.revoked_at = datetime.now(timezone.utc).replace(tzinfo=None)
    db.commit()
    logger.info("Déconnexion : %s (session %s)", ctx.user_id, ctx.session_id)


def resolve_session(db: Session, token: str) -> SessionContext:
    """
    Construit le contexte de session à partir d'un jeton bearer.
    Lève PermissionError si le jeton est invalide/expiré, la session révoquée
    ou le profil absent.
    """
    try:
        payload = jwt_handler.decode_access_token(token)
        user_id = uuid.UUID(payload["sub"])
        session_id = uuid.UUID(payload["sid"])
    except jwt.ExpiredSignatureError:
        raise PermissionError("Jeton expiré.")
    except (jwt.PyJWTError, KeyError, ValueError):
        raise PermissionError("Jeton invalide.")

    auth_session = db.get(AuthSession, session_id)
    if auth_session is None or auth_session.revoked_at is not None or auth_session.user_id != user_id:
        raise PermissionError("Session expirée ou révoquée.")

    profile = db.get(Profile, user_id)
    if profile is None:
        raise PermissionError("Profil introuvable pour ce compte.")

    return SessionContext(session_id=session_id, profile=ProfileResponse.model_validate(profile))

