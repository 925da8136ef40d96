"""
Router d'authentification : inscription, connexion, déconnexion, session courante.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context
from app.auth.session import SessionContext
from app.database import get_db
from app.schemas.auth import SignInRequest, SignUpRequest, TokenResponse
from app.services import auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["Authentification"])


@router.post("/sign-up", response_model=TokenResponse, status_code=201, summary="Créer un compte")
def sign_up(data: SignUpRequest, db: Session = Depends(get_db)):
    """
    Crée le compte, le profil et la notification de bienvenue, puis ouvre une session.
    Le matricule est obligatoire pour un élève.
    """
    try:
        return auth_service.sign_up(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/sign-in", response_model=TokenResponse, summary="Se connecter")
def sign_in(data: SignInRequest, db: Session = Depends(get_db)):
    try:
        return auth_service.sign_in(db, data)
    except PermissionError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/sign-out", status_code=204, summary="Se déconnecter")
def sign_out(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Révoque la session : le jeton courant n'est plus accepté."""
    auth_service.sign_out(db, ctx)


@router.get("/session", response_model=SessionContext, summary="Session courante")
def current_session(ctx: SessionContext = Depends(get_session_context)):
    return ctx
