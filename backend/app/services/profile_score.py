# 프로필 완성도 점수 계산
# - 이름(2자 이상) 20점 + 이메일 30점 + 나이 20점 + 취미 개당 3점(최대 30점) = 최대 100점
# - 모든 쓰기(생성/수정/취미 추가·삭제) 직전에 서비스 레이어가 반드시 호출합니다

from typing import Any, Dict, Mapping, Union

from ..models.user import UserRecord

NAME_POINTS = 20
EMAIL_POINTS = 30
AGE_POINTS = 20
POINTS_PER_HOBBY = 3
MAX_HOBBY_POINTS = 30


def compute_score(record: Union[UserRecord, Mapping[str, Any]]) -> int:
    if isinstance(record, UserRecord):
        record = record.model_dump()

    name = record.get("name")
    email = record.get("email")
    age = record.get("age")
    hobbies = record.get("hobbies") or []

    score = 0
    if name and len(name) >= 2:
        score += NAME_POINTS
    if email:
        score += EMAIL_POINTS
    if age is not None:
        score += AGE_POINTS
    score += min(len(hobbies) * POINTS_PER_HOBBY, MAX_HOBBY_POINTS)
    return score


def apply_score(record: Dict[str, Any]) -> Dict[str, Any]:
    record["profile_score"] = compute_score(record)
    return record
