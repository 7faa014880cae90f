import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from universe.config import settings
from universe.database import get_db
from universe.models.account import Account
from universe.models.profile import GalleryImage
from universe.services import gallery_service, image_service
from universe.services.guards import DASHBOARD_URL, require_profile
from universe.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Gallery"])


def _require_own_profile(db: Session, account: Account):
    profile = gallery_service.get_profile(db, account.id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.post("/upload/gallery")
async def upload_gallery_image(
    file: UploadFile = File(...),
    account: Account = Depends(require_profile),
    db: Session = Depends(get_db),
):
    try:
        profile = _require_own_profile(db, account)

        contents = await file.read(settings.MAX_UPLOAD_BYTES + 1)
        extension = image_service.validate_upload(file.content_type, contents)
        path = image_service.save_gallery_image(contents, extension)
        try:
            gallery_service.add_gallery_image(db, profile, path)
        except Exception:
            db.rollback()
            image_service.remove_upload(path)
            raise

        return RedirectResponse(DASHBOARD_URL, status_code=status.HTTP_303_SEE_OTHER)
    except Exception as exc:
        if not isinstance(exc, HTTPException):
            logger.exception("Gallery upload failed for account %s", account.id)
        return handle_exception(exc)


@router.post("/like-image/{image_id}")
def like_image(
    image_id: int,
    account: Account = Depends(require_profile),
    db: Session = Depends(get_db),
):
    try:
        image = db.get(GalleryImage, image_id)
        if not image:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")

        likes, liked = gallery_service.toggle_like(db, image, account.id)
        return create_response(
            message="Image liked" if liked else "Image unliked",
            data={"likes": likes, "liked": liked},
        )
    except Exception as exc:
        if not isinstance(exc, HTTPException):
            logger.exception("Like toggle failed for image %s", image_id)
        return handle_exception(exc)


@router.delete("/delete-image/{image_id}")
def delete_image(
    image_id: int,
    account: Account = Depends(require_profile),
    db: Session = Depends(get_db),
):
    try:
        profile = _require_own_profile(db, account)
        if not gallery_service.delete_image(db, profile, image_id):
            return Response(status_code=status.HTTP_404_NOT_FOUND)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return Response(status_code=exc.status_code)
    except Exception:
        logger.exception("Delete failed for image %s", image_id)
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
