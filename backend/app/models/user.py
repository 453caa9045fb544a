# User 도메인 모델
# - UserRecord: 저장소와 서비스 사이에서 주고받는 명시적 레코드 타입 (DB 없이도 생성 가능)
# - UserDocument: MongoDB 컬렉션 "users"에 매핑되는 Beanie Document
# - 이메일은 unique 인덱스, 검색/필터용 필드에는 일반 인덱스

from datetime import datetime, timezone
from typing import List, Optional

import pymongo
from beanie import Document, Indexed
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class UserRecord(BaseModel):
    id: Optional[str] = None
    name: str
    email: str
    age: Optional[int] = None
    hobbies: List[str] = Field(default_factory=list)
    is_active: bool = True
    profile_score: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def age_group(self) -> str:
        if self.age is None:
            return "Not specified"
        if self.age < 18:
            return "Minor"
        if self.age < 30:
            return "Young Adult"
        if self.age < 50:
            return "Adult"
        return "Senior"

    @property
    def profile_summary(self) -> str:
        age_text = f"{self.age} years old" if self.age is not None else "age not specified"
        hobbies_text = f"Hobbies: {', '.join(self.hobbies)}" if self.hobbies else "No hobbies listed"
        return f"{self.name} ({age_text}) - {hobbies_text}"


class UserDocument(Document):
    name: str
    email: Indexed(str, unique=True)  # 중복 방지 인덱스 (소문자로 정규화 후 저장)
    age: Optional[int] = None
    hobbies: List[str] = Field(default_factory=list)
    is_active: bool = True
    profile_score: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"  # 컬렉션명
        indexes = [
            [("name", pymongo.ASCENDING)],
            [("age", pymongo.ASCENDING)],
            [("hobbies", pymongo.ASCENDING)],
            [("is_active", pymongo.ASCENDING)],
        ]

    def to_record(self) -> UserRecord:
        data = self.model_dump(exclude={"id", "revision_id"})
        return UserRecord(id=str(self.id), **data)
