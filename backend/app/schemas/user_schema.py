# 요청/응답 스키마 정의 (Pydantic 모델)
# - JSON 필드명은 camelCase (isActive, profileScore, createdAt ...)
# - 요청 스키마는 타입만 느슨하게 받고, 실제 규칙 검사는 services/user_validation.py에서 합니다
# - profileScore/createdAt/updatedAt은 요청에서 받지 않습니다 (서버가 관리)

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.user import UserRecord
from ..services.stats_pipeline import UserStats


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


# ---- 요청 ----

class UserCreate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = None
    hobbies: Optional[List[str]] = None
    is_active: Optional[bool] = None

    def to_candidate(self) -> Dict[str, Any]:
        # 주니어 개발자님께: exclude_unset=True는 "요청에 실제로 들어온 필드만" 꺼냅니다.
        # 그래야 수정 시 보내지 않은 필드와 null로 보낸 필드를 구분할 수 있습니다.
        return self.model_dump(exclude_unset=True)


class UserUpdate(UserCreate):
    pass


class HobbyRequest(BaseModel):
    hobby: str


# ---- 응답 ----

class UserPublic(CamelModel):
    id: str
    name: str
    email: str
    age: Optional[int] = None
    hobbies: List[str] = Field(default_factory=list)
    is_active: bool = True
    profile_score: int = 0
    age_group: str
    profile_summary: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserPublic":
        return cls(
            **record.model_dump(),
            age_group=record.age_group,
            profile_summary=record.profile_summary,
        )


class Envelope(CamelModel):
    success: bool = True
    message: str
    timestamp: str = Field(default_factory=_now_iso)


class UserResponse(Envelope):
    data: UserPublic


class Pagination(CamelModel):
    current_page: int
    page_size: int
    total_users: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class AppliedFilters(CamelModel):
    applied: bool
    details: Dict[str, Any] = Field(default_factory=dict)


class UserListResponse(Envelope):
    data: List[UserPublic]
    pagination: Pagination
    filters: AppliedFilters


class SearchMeta(CamelModel):
    query: str
    field: str
    results: int


class UserSearchResponse(Envelope):
    data: List[UserPublic]
    search: SearchMeta


class UserStatsResponse(Envelope):
    data: UserStats
