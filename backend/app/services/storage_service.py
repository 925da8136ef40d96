"""
Stockage des fichiers envoyés (avatars, supports de cours, énoncés, remises).

Chaque bucket est un sous-dossier de STORAGE_DIR, servi en statique sous /storage.
L'URL publique retournée est enregistrée telle quelle sur la ligne propriétaire.
"""

import os
import re
import uuid
import logging
from typing import Optional

from app.config import settings

logger = logging.getLogger(__name__)

BUCKETS = {"avatars", "course-materials", "assignments", "submissions"}

ALLOWED_EXTENSIONS = {
    "pdf", "doc", "docx", "ppt", "pptx", "xls", "xlsx", "txt", "md", "csv",
    "zip", "png", "jpg", "jpeg", "gif", "webp", "mp3", "mp4", "mov",
}
IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def bucket_path(bucket: str, storage_dir: Optional[str] = None) -> str:
    if bucket not in BUCKETS:
        raise ValueError(f"Bucket inconnu : {bucket}.")
    return os.path.join(storage_dir or settings.STORAGE_DIR, bucket)


def ensure_buckets(storage_dir: Optional[str] = None) -> None:
    """Crée les dossiers des buckets s'ils n'existent pas (appelé au démarrage)."""
    for bucket in BUCKETS:
        os.makedirs(bucket_path(bucket, storage_dir), exist_ok=True)


def safe_filename(filename: str) -> str:
    name = os.path.basename(filename or "").strip()
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "fichier"


def extension_of(filename: str) -> str:
    return filename.rsplit(".", 1)[1].lower() if "." in filename else ""


def upload(
    bucket: str,
    filename: str,
    content: bytes,
    storage_dir: Optional[str] = None,
) -> str:
    """
    Écrit le fichier sous <bucket>/<uuid>_<nom nettoyé> et retourne son URL publique.

    Lève ValueError si le bucket est inconnu, l'extension refusée, le fichier
    vide ou trop volumineux.
    """
    directory = bucket_path(bucket, storage_dir)

    name = safe_filename(filename)
    extension = extension_of(name)
    allowed = IMAGE_EXTENSIONS if bucket == "avatars" else ALLOWED_EXTENSIONS
    if extension not in allowed:
        raise ValueError(f"Extension de fichier non autorisée : .{extension or '?'}")

    if not content:
        raise ValueError("Le fichier est vide.")
    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise ValueError(f"Le fichier dépasse la taille maximale de {settings.MAX_UPLOAD_SIZE_MB} Mo.")

    stored_name = f"{uuid.uuid4().hex}_{name}"
    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, stored_name), "wb") as f:
        f.write(content)

    logger.info("Fichier stocké : %s/%s (%d octets)", bucket, stored_name, len(content))
    return public_url(bucket, stored_name)


def public_url(bucket: str, stored_name: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/storage/{bucket}/{stored_name}"
