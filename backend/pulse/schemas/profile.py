from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdate(BaseModel):

    username: Optional[str] = Field(default=None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_.]+$")
    full_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)


class ProfileImageUpload(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(alias="imageBase64")
