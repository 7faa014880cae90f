from datetime import datetime

from pydantic import BaseModel, Field


class ProfileCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    gender: str | None = None
    bio: str | None = Field(default=None, max_length=1000)


class GalleryImageResponse(BaseModel):
    id: int
    image_path: str
    likes: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    id: int
    account_id: int
    display_name: str | None
    gender: str | None
    bio: str | None
    picture_path: str | None
    images: list[GalleryImageResponse] = []

    model_config = {"from_attributes": True}
