"""
Traduction des erreurs métier levées par les services en réponses HTTP.

- PermissionError                        → 403
- ValueError dont le message contient « introuvable » → 404
- autre ValueError (conflit d'état, doublon)          → 409
"""

from fastapi import HTTPException


def to_http_exception(exc: Exception, conflict_status: int = 409) -> HTTPException:
    msg = str(exc)
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=403, detail=msg)
    if "introuvable" in msg:
        return HTTPException(status_code=404, detail=msg)
    return HTTPException(status_code=conflict_status, detail=msg)
