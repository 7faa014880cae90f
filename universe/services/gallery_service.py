import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from universe.models.profile import GalleryImage, ImageLike, Profile
from universe.services import image_service

logger = logging.getLogger(__name__)


def get_profile(db: Session, account_id: int) -> Profile | None:
    return db.query(Profile).filter(Profile.account_id == account_id).first()


def add_gallery_image(db: Session, profile: Profile, image_path: str) -> GalleryImage:
    image = GalleryImage(profile_id=profile.id, image_path=image_path, likes=0)
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


def find_profile_image(db: Session, profile: Profile, image_id: int) -> GalleryImage | None:
    return (
        db.query(GalleryImage)
        .filter(GalleryImage.id == image_id, GalleryImage.profile_id == profile.id)
        .first()
    )


def liked_image_ids(db: Session, account_id: int, image_ids: list[int]) -> set[int]:
    if not image_ids:
        return set()
    rows = (
        db.query(ImageLike.image_id)
        .filter(ImageLike.account_id == account_id, ImageLike.image_id.in_(image_ids))
        .all()
    )
    return {image_id for (image_id,) in rows}


def _sync_like_count(db: Session, image: GalleryImage) -> int:
    image.likes = (
        db.query(func.count(ImageLike.id))
        .filter(ImageLike.image_id == image.id)
        .scalar()
        or 0
    )
    return image.likes


def toggle_like(db: Session, image: GalleryImage, account_id: int) -> tuple[int, bool]:
    """Flip ``account_id``'s like on ``image``; returns the new count and state."""
    existing = (
        db.query(ImageLike)
        .filter(ImageLike.image_id == image.id, ImageLike.account_id == account_id)
        .first()
    )
    if existing:
        db.delete(existing)
        db.flush()
        liked = False
    else:
        db.add(ImageLike(image_id=image.id, account_id=account_id))
        try:
            db.flush()
        except IntegrityError:
            # a concurrent request already recorded this like
            db.rollback()
        liked = True

    likes = _sync_like_count(db, image)
    db.commit()
    logger.info("Account %s %s image %s (likes=%s)", account_id, "liked" if liked else "unliked", image.id, likes)
    return likes, liked


def delete_image(db: Session, profile: Profile, image_id: int) -> bool:
    image = find_profile_image(db, profile, image_id)
    if not image:
        return False

    image_path = image.image_path
    db.delete(image)
    db.commit()

    # record first, file second: a failed unlink only orphans the file
    if not image_service.remove_upload(image_path):
        logger.warning("Image %s deleted but file %s was not removed", image_id, image_path)
    logger.info("Deleted image %s from profile %s", image_id, profile.id)
    return True
