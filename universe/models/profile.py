from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from universe.database import Base
from universe.utils.clock import utcnow


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=True)
    gender = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    picture_path = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    account = relationship("Account", back_populates="profile")
    images = relationship(
        "GalleryImage",
        back_populates="profile",
        order_by="GalleryImage.id",
        cascade="all, delete-orphan",
    )


class GalleryImage(Base):
    __tablename__ = "gallery_images"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    image_path = Column(String, nullable=False)
    likes = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    profile = relationship("Profile", back_populates="images")
    likers = relationship("ImageLike", back_populates="image", cascade="all, delete-orphan")


class ImageLike(Base):
    __tablename__ = "image_likes"
    __table_args__ = (UniqueConstraint("image_id", "account_id", name="uq_image_likes_image_account"),)

    id = Column(Integer, primary_key=True, index=True)
    image_id = Column(Integer, ForeignKey("gallery_images.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    image = relationship("GalleryImage", back_populates="likers")
