# backend/studyfeedback/models/user.py
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserInDB(BaseModel):
    """
    MongoDB 'users' 컬렉션의 사용자 문서.
    피드백 작성 시 name / profile_image / is_verified 가 스냅샷으로 복사됩니다.
    """
    # MongoDB의 "_id"를 "id" 필드로 사용 (ObjectId / str 혼재 허용)
    id: str = Field(..., alias="_id")

    name: str
    email: Optional[str] = None
    profile_image: str = ""

    is_verified: bool = False
    is_admin: bool = False

    created_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        arbitrary_types_allowed=True,
    )

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> str:
        return str(v) if v is not None else v

    @field_validator("profile_image", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return v or ""
