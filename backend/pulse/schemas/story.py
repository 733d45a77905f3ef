from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StoryCreate(BaseModel):

    model_config = ConfigDict(populate_by_name=True)

    media_type: Optional[str] = Field(default=None, alias="mediaType")
    media_base64: Optional[str] = Field(default=None, alias="mediaBase64")
