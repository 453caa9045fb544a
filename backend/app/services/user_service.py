# 사용자 서비스 레이어
# - 목록/검색/통계 조회, 생성/수정/삭제, 취미 추가/삭제
# - 모든 쓰기 경로: 검증 → (이메일 중복 확인) → 점수 재계산 → 저장
# - 저장소(UserStore)는 생성자로 주입받습니다 (DB 없이 테스트 가능)

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from fastapi import Depends

from ..core.config import settings
from ..core.exceptions import ConflictError, FieldValidationError, NotFoundError, UniqueConstraintViolation
from ..models.user import UserRecord, utcnow
from ..repositories.user_repository import UserStore, get_user_store
from .profile_score import apply_score
from .query_builder import build_list_query, build_pagination, build_search_query
from .stats_pipeline import UserStats, UserStatsPipeline
from .user_validation import MAX_HOBBIES, validate_hobby, validate_object_id, validate_user

logger = logging.getLogger(__name__)

SCORED_FIELDS = ("name", "email", "age", "hobbies")


class UserService:
    def __init__(self, store: UserStore):
        self.store = store

    # ---- 조회 ----

    async def list_users(
        self, params: Mapping[str, Optional[str]]
    ) -> Tuple[List[UserRecord], Dict[str, Any], Dict[str, Any]]:
        query = build_list_query(params)
        users, total = await self.store.find_many(query.predicate, query.sort, query.skip, query.limit)
        pagination = build_pagination(query.page, query.limit, total)
        logger.info(f"[UserService] Found {len(users)} users (Total: {total})")
        return users, pagination, query.predicate

    async def search_users(self, q: Optional[str], field: Optional[str] = "all") -> List[UserRecord]:
        predicate = build_search_query(q, field)
        users, _ = await self.store.find_many(predicate, [("_id", 1)], 0, settings.SEARCH_RESULT_LIMIT)
        logger.info(f"[UserService] Search '{q}' in {field}: {len(users)} results")
        return users

    async def get_stats(self) -> UserStats:
        return await self.store.aggregate(UserStatsPipeline())

    async def get_user(self, user_id: str) -> UserRecord:
        user = await self.store.get(validate_object_id(user_id))
        if not user:
            raise NotFoundError()
        return user

    # ---- 쓰기 ----

    async def create_user(self, payload: Dict[str, Any]) -> UserRecord:
        data = validate_user(payload, mode="create")

        if await self.store.find_one({"email": data["email"]}):
            raise ConflictError("User with this email already exists")

        now = utcnow()
        record = UserRecord(**apply_score(data), created_at=now, updated_at=now)
        try:
            user = await self.store.insert(record)
        except UniqueConstraintViolation:
            # 사전 확인 이후 다른 요청이 먼저 같은 이메일을 저장한 경우
            raise ConflictError("User with this email already exists")

        logger.info(f"[UserService] User created: {user.name} (Email: {user.email})")
        return user

    async def update_user(self, user_id: str, payload: Dict[str, Any]) -> UserRecord:
        user_id = validate_object_id(user_id)
        changes = validate_user(payload, mode="update")

        current = await self.store.get(user_id)
        if not current:
            raise NotFoundError()

        if "email" in changes:
            other = await self.store.find_one({"email": changes["email"]})
            if other and other.id != user_id:
                raise ConflictError("Email already exists for another user")

        return await self._save(current, changes)

    async def delete_user(self, user_id: str) -> UserRecord:
        user = await self.store.delete_by_id(validate_object_id(user_id))
        if not user:
            raise NotFoundError()
        logger.info(f"[UserService] User deleted: {user.name}")
        return user

    async def add_hobby(self, user_id: str, hobby: Any) -> UserRecord:
        hobby = validate_hobby(hobby)
        current = await self.get_user(user_id)

        if hobby in current.hobbies:
            return current
        if len(current.hobbies) >= MAX_HOBBIES:
            raise FieldValidationError({"hobbies": "Cannot have more than 10 hobbies"})
        return await self._save(current, {"hobbies": current.hobbies + [hobby]})

    async def remove_hobby(self, user_id: str, hobby: Any) -> UserRecord:
        hobby = validate_hobby(hobby)
        current = await self.get_user(user_id)

        if hobby not in current.hobbies:
            return current
        hobbies = list(current.hobbies)
        hobbies.remove(hobby)
        return await self._save(current, {"hobbies": hobbies})

    async def _save(self, current: UserRecord, changes: Dict[str, Any]) -> UserRecord:
        """변경분을 현재 레코드에 합쳐 점수를 다시 계산한 뒤 한 번에 저장합니다."""
        merged = {**current.model_dump(include=set(SCORED_FIELDS)), **changes}
        # 점수 계산에 쓴 필드 전체를 점수와 함께 $set (저장된 점수 = 저장된 필드의 점수)
        fields = {**apply_score(merged), "updated_at": utcnow()}
        try:
            user = await self.store.update_by_id(current.id, fields)
        except UniqueConstraintViolation:
            raise ConflictError("Email already exists for another user")
        if not user:
            # 조회와 저장 사이에 삭제된 경우
            raise NotFoundError()
        logger.info(f"[UserService] User updated: {user.name}")
        return user


def get_user_service(store: UserStore = Depends(get_user_store)) -> UserService:
    return UserService(store)
