# src/travel_threads/api/v1/endpoints/media.py
"""Image upload endpoint."""

import uuid
from pathlib import PurePosixPath

from fastapi import APIRouter, File, UploadFile, status

from travel_threads.api.v1.dependencies import ContextDep, CurrentUserDep
from travel_threads.services.media import upload_image

router = APIRouter(prefix="/media", tags=["media"])


@router.post("/images", status_code=status.HTTP_201_CREATED)
async def upload(
    current_user: CurrentUserDep,
    ctx: ContextDep,
    file: UploadFile = File(...),
) -> dict[str, str]:
    """Store an image and return its public URL.

    The stored name is prefixed with the uploader's id and a random token so
    uploads never overwrite each other.
    """
    original = PurePosixPath((file.filename or "image").replace("\\", "/")).name
    filename = f"{current_user.id}-{uuid.uuid4().hex[:12]}-{original}"
    data = await file.read()
    url = await upload_image(ctx, filename, data, file.content_type or "application/octet-stream")
    return {"url": url}
