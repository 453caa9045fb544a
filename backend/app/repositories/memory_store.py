# 메모리 저장소 (STORAGE_BACKEND=memory)
# - MongoDB 없이 로컬 개발/테스트를 할 때 사용
# - 쿼리 빌더가 만드는 필터 문법($regex/$options, $gte/$lte, $or, 동등/배열 포함)만 지원
# - 이메일 unique 제약은 asyncio.Lock 안에서 검사 후 기록하여 원자적으로 보장

import asyncio
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId

from ..core.exceptions import UniqueConstraintViolation
from ..models.user import UserRecord
from ..services.stats_pipeline import UserStats, UserStatsPipeline


def _document(record: UserRecord) -> Dict[str, Any]:
    doc = record.model_dump()
    doc["_id"] = doc.pop("id")
    return doc


def _any(value: Any, test: Callable[[Any], bool]) -> bool:
    # MongoDB처럼 배열 필드는 원소 중 하나라도 조건을 만족하면 매칭
    if isinstance(value, list):
        return any(test(v) for v in value)
    return test(value)


def _match_operators(value: Any, cond: Dict[str, Any]) -> bool:
    for op, arg in cond.items():
        if op == "$options":
            continue
        if op == "$regex":
            flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
            pattern = re.compile(arg, flags)
            if not _any(value, lambda v: isinstance(v, str) and pattern.search(v) is not None):
                return False
        elif op == "$gte":
            if not _any(value, lambda v: v is not None and v >= arg):
                return False
        elif op == "$lte":
            if not _any(value, lambda v: v is not None and v <= arg):
                return False
        else:
            raise ValueError(f"Unsupported query operator: {op}")
    return True


def matches(doc: Dict[str, Any], predicate: Dict[str, Any]) -> bool:
    for key, cond in predicate.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in cond):
                return False
            continue
        value = doc.get(key)
        if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
            if not _match_operators(value, cond):
                return False
        elif isinstance(value, list) and not isinstance(cond, list):
            if cond not in value:
                return False
        elif value != cond:
            return False
    return True


def _sort_key(field: str) -> Callable[[Dict[str, Any]], Tuple[bool, Any]]:
    # None은 오름차순에서 가장 앞에 오도록 (MongoDB의 null 정렬과 동일)
    def key(doc: Dict[str, Any]) -> Tuple[bool, Any]:
        value = doc.get(field)
        if isinstance(value, list):
            value = tuple(value)
        return (value is not None, value)
    return key


class InMemoryUserStore:
    def __init__(self, records: Optional[Iterable[UserRecord]] = None):
        self._records: Dict[str, UserRecord] = {}
        self._lock = asyncio.Lock()
        for record in records or []:
            record = record.model_copy(update={"id": record.id or str(ObjectId())})
            self._records[record.id] = record

    def _email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        return any(r.email == email and r.id != exclude_id for r in self._records.values())

    def _select(self, predicate: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [doc for doc in map(_document, self._records.values()) if matches(doc, predicate)]

    async def find_many(
        self, predicate: Dict[str, Any], sort: List[Tuple[str, int]], skip: int = 0, limit: Optional[int] = None
    ) -> Tuple[List[UserRecord], int]:
        docs = self._select(predicate)
        # 안정 정렬을 뒤 키부터 적용하면 다중 키 정렬이 됩니다
        for field, direction in reversed(sort):
            docs.sort(key=_sort_key(field), reverse=direction < 0)
        total = len(docs)
        page = docs[skip: skip + limit] if limit else docs[skip:]
        return [self._records[d["_id"]].model_copy(deep=True) for d in page], total

    async def find_one(self, predicate: Dict[str, Any]) -> Optional[UserRecord]:
        docs = self._select(predicate)
        return self._records[docs[0]["_id"]].model_copy(deep=True) if docs else None

    async def get(self, user_id: str) -> Optional[UserRecord]:
        record = self._records.get(user_id)
        return record.model_copy(deep=True) if record else None

    async def insert(self, record: UserRecord) -> UserRecord:
        async with self._lock:
            if self._email_taken(record.email):
                raise UniqueConstraintViolation("email", record.email)
            stored = record.model_copy(update={"id": str(ObjectId())}, deep=True)
            self._records[stored.id] = stored
        return stored.model_copy(deep=True)

    async def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserRecord]:
        async with self._lock:
            current = self._records.get(user_id)
            if current is None:
                return None
            if "email" in fields and self._email_taken(fields["email"], exclude_id=user_id):
                raise UniqueConstraintViolation("email", fields["email"])
            updated = current.model_copy(update=fields, deep=True)
            self._records[user_id] = updated
        return updated.model_copy(deep=True)

    async def delete_by_id(self, user_id: str) -> Optional[UserRecord]:
        async with self._lock:
            record = self._records.pop(user_id, None)
        return record.model_copy(deep=True) if record else None

    async def aggregate(self, pipeline: UserStatsPipeline) -> UserStats:
        return pipeline.evaluate(list(self._records.values()))
