"""
Router d'envoi de fichiers vers les buckets de stockage.
Les fichiers sont ensuite servis en statique sous /storage/<bucket>/<fichier>.
"""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from app.auth.dependencies import get_session_context
from app.auth.session import SessionContext
from app.services import storage_service

router = APIRouter(prefix="/api/v1/storage", tags=["Stockage"])


class UploadResult(BaseModel):
    url: str
    file_name: str


@router.post("/{bucket}", response_model=UploadResult, status_code=201, summary="Envoyer un fichier")
async def upload_file(
    bucket: str,
    file: UploadFile = File(...),
    ctx: SessionContext = Depends(get_session_context),
):
    """
    Stocke le fichier dans le bucket (avatars, course-materials, assignments, submissions)
    et retourne son URL publique, à enregistrer sur la ressource concernée.
    """
    content = await file.read()
    try:
        url = storage_service.upload(bucket, file.filename, content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UploadResult(url=url, file_name=file.filename)
