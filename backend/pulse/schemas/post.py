from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    caption: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    post_type: str = "instagram"
    image_base64: Optional[str] = Field(default=None, alias="imageBase64")
    video_base64: Optional[str] = Field(default=None, alias="videoBase64")


class CommentCreate(BaseModel):

    comment: Optional[str] = None
