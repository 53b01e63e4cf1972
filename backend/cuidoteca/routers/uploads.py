"""Upload router.

Endpoints for document uploads.  The returned URL is stored as the
document's ``file_url``.
"""

import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from cuidoteca.config import settings
from cuidoteca.core.dependencies import get_current_user, require_institution
from cuidoteca.schemas.document import UploadResponse

router = APIRouter(prefix="/uploads", tags=["Uploads"])

ALLOWED_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/webp",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


def _get_upload_dir() -> Path:
    """Get or create the upload directory."""
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


@router.post("/documents", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile,
    current_user=Depends(require_institution),
):
    """Store an uploaded document and return the URL to reach it."""
    if file.content_type not in ALLOWED_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tipo de arquivo não permitido",
        )

    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Arquivo muito grande. Tamanho máximo: {MAX_FILE_SIZE // (1024 * 1024)} MB",
        )

    ext = Path(file.filename or "document").suffix
    filename = f"{uuid.uuid4()}{ext}"
    (_get_upload_dir() / filename).write_bytes(content)

    return UploadResponse(
        url=f"{settings.API_V1_PREFIX}/uploads/files/{filename}",
        file_name=file.filename or filename,
        file_size=len(content),
        file_type=file.content_type,
    )


@router.get("/files/{filename}")
async def get_uploaded_file(
    filename: str,
    current_user=Depends(get_current_user),
):
    """Serve an uploaded file."""
    # Prevent path traversal
    if "/" in filename or "\\" in filename or ".." in filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nome de arquivo inválido",
        )

    file_path = _get_upload_dir() / filename
    if not file_path.exists():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Arquivo não encontrado",
        )

    return FileResponse(file_path)
