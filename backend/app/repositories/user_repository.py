# 사용자 저장소 레이어
# - 데이터 접근(조회/생성/수정/삭제/집계)만 담당 (서비스 로직 분리)
# - UserStore: 서비스가 기대하는 저장소 계약 (MongoDB 구현과 메모리 구현이 모두 따름)
# - UserRepository: Beanie(MongoDB) 구현

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Protocol, Tuple

from beanie import PydanticObjectId, UpdateResponse
from beanie.exceptions import CollectionWasNotInitialized
from pymongo.errors import DuplicateKeyError

from ..core.config import settings
from ..core.exceptions import InternalError, UniqueConstraintViolation
from ..models.user import UserDocument, UserRecord
from ..services.stats_pipeline import UserStats, UserStatsPipeline
from .memory_store import InMemoryUserStore

logger = logging.getLogger(__name__)

Predicate = Dict[str, Any]
SortSpec = List[Tuple[str, int]]


class UserStore(Protocol):
    async def find_many(
        self, predicate: Predicate, sort: SortSpec, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[UserRecord], int]: ...

    async def find_one(self, predicate: Predicate) -> Optional[UserRecord]: ...

    async def get(self, user_id: str) -> Optional[UserRecord]: ...

    async def insert(self, record: UserRecord) -> UserRecord: ...

    async def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserRecord]: ...

    async def delete_by_id(self, user_id: str) -> Optional[UserRecord]: ...

    async def aggregate(self, pipeline: UserStatsPipeline) -> UserStats: ...


class UserRepository:
    async def find_many(
        self, predicate: Predicate, sort: SortSpec, skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[UserRecord], int]:
        total = await UserDocument.find(predicate).count()
        query = UserDocument.find(predicate).sort(sort).skip(skip)
        if limit:
            query = query.limit(limit)
        docs = await query.to_list()
        return [d.to_record() for d in docs], total

    async def find_one(self, predicate: Predicate) -> Optional[UserRecord]:
        doc = await UserDocument.find_one(predicate)
        return doc.to_record() if doc else None

    async def get(self, user_id: str) -> Optional[UserRecord]:
        doc = await UserDocument.get(PydanticObjectId(user_id))
        return doc.to_record() if doc else None

    async def insert(self, record: UserRecord) -> UserRecord:
        doc = UserDocument(**record.model_dump(exclude={"id"}))
        try:
            await doc.insert()
        except DuplicateKeyError:
            # 주니어 개발자님께: unique 인덱스 덕분에 동시에 같은 이메일로 가입해도 하나만 성공합니다.
            raise UniqueConstraintViolation("email", record.email)
        return doc.to_record()

    async def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserRecord]:
        # 읽기-수정-쓰기를 find_one_and_update 한 번으로 처리하고 수정된 문서를 돌려받습니다
        try:
            doc = await UserDocument.find_one(UserDocument.id == PydanticObjectId(user_id)).update(
                {"$set": fields},
                response_type=UpdateResponse.NEW_DOCUMENT,
            )
        except DuplicateKeyError:
            raise UniqueConstraintViolation("email", fields.get("email"))
        return doc.to_record() if doc else None

    async def delete_by_id(self, user_id: str) -> Optional[UserRecord]:
        doc = await UserDocument.get(PydanticObjectId(user_id))
        if not doc:
            return None
        await doc.delete()
        return doc.to_record()

    async def aggregate(self, pipeline: UserStatsPipeline) -> UserStats:
        rows = await UserDocument.aggregate(pipeline.stages()).to_list()
        return pipeline.from_facet(rows[0] if rows else {})


@lru_cache
def _memory_store() -> InMemoryUserStore:
    logger.warning("[UserStore] Using in-memory storage. Data is lost on restart.")
    return InMemoryUserStore()


def get_user_store() -> UserStore:
    if settings.STORAGE_BACKEND == "memory":
        return _memory_store()
    try:
        UserDocument.get_settings()
    except CollectionWasNotInitialized:
        # 시작 시 MongoDB 연결에 실패해 Beanie가 초기화되지 않은 상태
        raise InternalError("Database is not available")
    return UserRepository()
