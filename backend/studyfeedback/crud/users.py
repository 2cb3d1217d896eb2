# backend/studyfeedback/crud/users.py

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId

from studyfeedback.db.mongo import get_db
from studyfeedback.models.user import UserInDB


def get_users_collection():
    """
    Motor DB 핸들에서 users 컬렉션을 가져옵니다.
    connect_to_mongo() 이후에 db가 세팅되어 있어야 합니다.
    """
    return get_db()["users"]


def _strip_or_none(v):
    if v is None:
        return None
    if not isinstance(v, str):
        return v
    s = v.strip()
    return s or None


def _safe_object_id(user_id: Union[str, ObjectId]) -> Optional[ObjectId]:
    if isinstance(user_id, ObjectId):
        return user_id

    if isinstance(user_id, str):
        user_id = user_id.strip()

    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        return None


def _id_filter(user_id: Union[str, ObjectId]) -> Dict[str, Any]:
    """
    users 컬렉션의 _id 타입이 ObjectId / string 혼재된 상황을 모두 커버하는 필터.
    - ObjectId로 변환 가능하면: ObjectId / string 둘 다 매칭
    - 변환 불가하면: string 매칭
    """
    if isinstance(user_id, str):
        user_id = user_id.strip()

    oid = _safe_object_id(user_id)

    if isinstance(user_id, str) and oid is not None:
        return {"$or": [{"_id": oid}, {"_id": user_id}]}

    if oid is not None:
        return {"_id": oid}

    return {"_id": user_id}


# ---------- READ ----------

async def get_user_by_id(user_id: Union[str, ObjectId]) -> Optional[UserInDB]:
    user = await get_users_collection().find_one(_id_filter(user_id))
    return UserInDB(**user) if user else None


# ---------- CREATE ----------

async def create_user(
    *,
    name: str,
    email: Optional[str] = None,
    profile_image: Optional[str] = None,
    is_verified: bool = False,
    is_admin: bool = False,
) -> UserInDB:
    user_data = {
        "name": _strip_or_none(name) or name,
        "email": _strip_or_none(email),
        "profile_image": _strip_or_none(profile_image) or "",
        "is_verified": is_verified,
        "is_admin": is_admin,
        "created_at": datetime.now(timezone.utc),
    }

    result = await get_users_collection().insert_one(user_data)
    user_data["_id"] = result.inserted_id
    return UserInDB(**user_data)


# ---------- UPDATE ----------

async def update_profile(
    user_id: Union[str, ObjectId],
    *,
    name: Optional[str] = None,
    profile_image: Optional[str] = None,
    is_verified: Optional[bool] = None,
) -> Optional[UserInDB]:
    """
    프로필 변경. 이미 작성된 피드백의 작성자 스냅샷에는 반영되지 않습니다.
    """
    update_fields: Dict[str, Any] = {}
    if _strip_or_none(name) is not None:
        update_fields["name"] = _strip_or_none(name)
    if profile_image is not None:
        update_fields["profile_image"] = _strip_or_none(profile_image) or ""
    if is_verified is not None:
        update_fields["is_verified"] = is_verified

    if update_fields:
        result = await get_users_collection().update_one(
            _id_filter(user_id),
            {"$set": update_fields},
        )
        if result.matched_count == 0:
            return None

    return await get_user_by_id(user_id)
