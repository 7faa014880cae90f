import logging
import uuid
from pathlib import Path

import cv2
import numpy as np
from fastapi import HTTPException, status

from universe.config import settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
PROFILE_PICTURE_DIR = "profile_pictures"
GALLERY_DIR = "gallery"

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def ensure_upload_dirs() -> None:
    for folder in (PROFILE_PICTURE_DIR, GALLERY_DIR):
        (settings.UPLOAD_ROOT / folder).mkdir(parents=True, exist_ok=True)


def _public_path(relative: str) -> str:
    return f"{PUBLIC_PREFIX}/{relative}"


def _disk_path(public_path: str) -> Path | None:
    """Map a public ``/uploads/...`` path back to a file under the upload root."""
    if not public_path or not public_path.startswith(PUBLIC_PREFIX + "/"):
        return None
    root = settings.UPLOAD_ROOT.resolve()
    candidate = (root / public_path[len(PUBLIC_PREFIX) + 1:]).resolve()
    if root not in candidate.parents:
        return None
    return candidate


def validate_upload(content_type: str | None, contents: bytes) -> str:
    """Check an uploaded image and return the extension to store it under."""
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported image type")
    if not contents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file upload")
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File too large",
        )
    return ALLOWED_CONTENT_TYPES[content_type]


def _square_resize(image: np.ndarray, size: int) -> np.ndarray:
    # centre-crop to a square first so the picture is not stretched
    height, width = image.shape[:2]
    side = min(height, width)
    top = (height - side) // 2
    left = (width - side) // 2
    cropped = image[top:top + side, left:left + side]
    interpolation = cv2.INTER_AREA if side > size else cv2.INTER_CUBIC
    return cv2.resize(cropped, (size, size), interpolation=interpolation)


def save_profile_picture(account_id: int, contents: bytes) -> str:
    """Resize and recompress a profile picture, replacing any previous one."""
    image = cv2.imdecode(np.frombuffer(contents, np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Could not read image")

    resized = _square_resize(image, settings.PROFILE_PICTURE_SIZE)
    ok, buffer = cv2.imencode(
        ".jpg",
        resized,
        [int(cv2.IMWRITE_JPEG_QUALITY), settings.PROFILE_PICTURE_QUALITY],
    )
    if not ok:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not encode image")

    relative = f"{PROFILE_PICTURE_DIR}/pfp_{account_id}.jpg"
    target = settings.UPLOAD_ROOT / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(buffer.tobytes())

    logger.info("Stored profile picture for account %s (%s bytes)", account_id, len(buffer))
    return _public_path(relative)


def save_gallery_image(contents: bytes, extension: str) -> str:
    relative = f"{GALLERY_DIR}/{uuid.uuid4().hex}{extension}"
    target = settings.UPLOAD_ROOT / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(contents)

    logger.info("Stored gallery image %s (%s bytes)", relative, len(contents))
    return _public_path(relative)


def remove_upload(public_path: str) -> bool:
    target = _disk_path(public_path)
    if target is None or not target.exists():
        return False
    try:
        target.unlink()
    except OSError:
        logger.warning("Could not remove upload %s", target, exc_info=True)
        return False
    return True
