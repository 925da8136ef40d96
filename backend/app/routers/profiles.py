"""
Router des profils utilisateurs.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.auth.dependencies import get_session_context, require_roles
from app.auth.session import SessionContext
from app.database import get_db
from app.routers.errors import to_http_exception
from app.schemas.profile import ProfileResponse, ProfileUpdate
from app.services import profile_service, storage_service

router = APIRouter(prefix="/api/v1/profiles", tags=["Profils"])


@router.get("/me", response_model=ProfileResponse, summary="Mon profil")
def get_my_profile(
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    profile = profile_service.get_profile(db, ctx.user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profil introuvable.")
    return profile


@router.put("/me", response_model=ProfileResponse, summary="Modifier mon profil")
def update_my_profile(
    data: ProfileUpdate,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Seuls les champs fournis sont modifiés. Le rôle ne peut pas être changé ici."""
    try:
        return profile_service.update_my_profile(db, ctx, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/me/avatar", response_model=ProfileResponse, summary="Changer mon avatar")
async def upload_avatar(
    file: UploadFile = File(...),
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    """Stocke l'image dans le bucket avatars et enregistre son URL publique sur le profil."""
    content = await file.read()
    try:
        url = storage_service.upload("avatars", file.filename, content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return profile_service.set_avatar(db, ctx, url)


@router.get("", response_model=List[ProfileResponse], summary="Lister les profils")
def list_profiles(
    role: Optional[str] = None,
    ctx: SessionContext = Depends(require_roles("admin", "teacher")),
    db: Session = Depends(get_db),
):
    """Réservé aux administrateurs et aux enseignants (ex. pour inscrire un élève)."""
    return profile_service.list_profiles(db, role)


@router.get("/{profile_id}", response_model=ProfileResponse, summary="Détail d'un profil")
def get_profile(
    profile_id: uuid.UUID,
    ctx: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    profile = profile_service.get_profile(db, profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profil introuvable.")
    return profile
