from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReelCreate(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    caption: Optional[str] = None
    music: Optional[str] = None
    video_url: Optional[str] = None
    video_base64: Optional[str] = Field(default=None, alias="videoBase64")
