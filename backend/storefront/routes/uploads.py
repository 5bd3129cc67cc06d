import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from storefront import config, schemas
from storefront.auth import require_roles
from storefront.schemas import Role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])

# Stored extension comes from the accepted content type, never from the client filename
IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@router.post("/upload", response_model=schemas.UploadResponse, status_code=201)
async def upload_image(
    request: Request,
    image: UploadFile = File(...),
    user: schemas.User = Depends(require_roles(Role.ADMIN, Role.SUPPLIER)),
):
    """
    Store one product image and return its public path.

    The returned url is attached to a product later through imageUrls.
    """
    extension = IMAGE_EXTENSIONS.get((image.content_type or "").lower())
    if extension is None:
        raise HTTPException(status_code=400, detail="Only image uploads are allowed")

    # Read one byte past the limit so oversize files are detected without reading them whole
    content = await image.read(config.MAX_UPLOAD_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail=f"Image exceeds the {config.MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit")

    upload_dir = Path(request.app.state.upload_dir)
    filename = f"{uuid.uuid4().hex}{extension}"
    (upload_dir / filename).write_bytes(content)

    logger.info("Stored upload %s (%d bytes) from %s", filename, len(content), user.username)
    return schemas.UploadResponse(url=f"/uploads/{filename}")
