# accounts/schemas/profile.py

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional


class ProfileBase(BaseModel):
    username: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    description: Optional[str] = None


class ProfileCreate(ProfileBase):
    """POST /api/profiles 用（所有者は X-User-Id から決まる）"""
    pass


class ProfileUpdate(BaseModel):
    """PUT /api/profiles/{id} 用。指定された項目だけ更新する"""
    display_name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None

    @model_validator(mode="after")
    def _at_least_one_field(self):
        if self.display_name is None and "description" not in self.model_fields_set:
            raise ValueError("display_name or description is required")
        return self


class ProfileOut(ProfileBase):
    """レスポンス用"""
    id: int
    external_identity_id: str
    picture_url: str

    model_config = ConfigDict(from_attributes=True)


class PictureUploadOut(BaseModel):
    message: str
    url: str
