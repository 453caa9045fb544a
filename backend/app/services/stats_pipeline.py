# 사용자 통계 집계 엔진
# - 전체/활성 사용자 수, 나이 통계, 인기 취미 Top 10, 나이대별 그룹, 프로필 점수 통계
# - UserStatsPipeline은 저장소에 넘기는 "파이프라인 명세"입니다.
#   MongoDB 저장소는 stages()를 aggregate로 실행하고 from_facet()으로 결과를 해석하며,
#   메모리 저장소는 evaluate()로 같은 결과를 파이썬에서 직접 계산합니다.

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.user import UserRecord, utcnow

AGE_BUCKET_BOUNDARIES = (0, 18, 30, 50, 100)
OVERFLOW_BUCKET = "Other"
POPULAR_HOBBY_LIMIT = 10


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatsTotals(_CamelModel):
    users: int = 0
    active: int = 0
    inactive: int = 0


class AgeGroupMember(_CamelModel):
    name: str
    age: int


class AgeGroup(_CamelModel):
    bucket: Union[int, str]  # 구간 하한값 (0, 18, 30, 50) 또는 "Other"
    count: int
    users: List[AgeGroupMember] = Field(default_factory=list)


class AgeStats(_CamelModel):
    average: float = 0
    min: int = 0
    max: int = 0
    groups: List[AgeGroup] = Field(default_factory=list)


class HobbyCount(_CamelModel):
    hobby: str
    count: int


class HobbyStats(_CamelModel):
    popular: List[HobbyCount] = Field(default_factory=list)


class ProfileStats(_CamelModel):
    average_score: float = 0
    min_score: int = 0
    max_score: int = 0


class UserStats(_CamelModel):
    totals: StatsTotals = Field(default_factory=StatsTotals)
    age: AgeStats = Field(default_factory=AgeStats)
    hobbies: HobbyStats = Field(default_factory=HobbyStats)
    profile: ProfileStats = Field(default_factory=ProfileStats)
    generated_at: datetime = Field(default_factory=utcnow)


def _first(facet: Dict[str, Any], key: str) -> Dict[str, Any]:
    # 주니어 개발자님께: $facet의 각 하위 결과는 리스트입니다.
    # 데이터가 없으면 빈 리스트가 오므로 빈 dict로 대체해 0 기본값을 쓰게 합니다.
    rows = facet.get(key) or []
    return rows[0] if rows else {}


class UserStatsPipeline:
    def __init__(
        self,
        boundaries: Sequence[int] = AGE_BUCKET_BOUNDARIES,
        overflow_bucket: str = OVERFLOW_BUCKET,
        hobby_limit: int = POPULAR_HOBBY_LIMIT,
    ):
        self.boundaries = list(boundaries)
        self.overflow_bucket = overflow_bucket
        self.hobby_limit = hobby_limit

    # ---- MongoDB ----

    def stages(self) -> List[Dict[str, Any]]:
        has_age = {"$match": {"age": {"$ne": None}}}
        return [
            {
                "$facet": {
                    "totalCount": [{"$count": "count"}],
                    "activeCount": [{"$match": {"is_active": True}}, {"$count": "count"}],
                    "ageStats": [
                        has_age,
                        {
                            "$group": {
                                "_id": None,
                                "averageAge": {"$avg": "$age"},
                                "minAge": {"$min": "$age"},
                                "maxAge": {"$max": "$age"},
                            }
                        },
                    ],
                    "popularHobbies": [
                        {"$unwind": "$hobbies"},
                        {"$group": {"_id": "$hobbies", "count": {"$sum": 1}}},
                        # 동점이면 취미 이름 오름차순으로 고정
                        {"$sort": {"count": -1, "_id": 1}},
                        {"$limit": self.hobby_limit},
                    ],
                    "ageGroups": [
                        has_age,
                        {
                            "$bucket": {
                                "groupBy": "$age",
                                "boundaries": self.boundaries,
                                "default": self.overflow_bucket,
                                "output": {
                                    "count": {"$sum": 1},
                                    "users": {"$push": {"name": "$name", "age": "$age"}},
                                },
                            }
                        },
                    ],
                    "profileScores": [
                        {
                            "$group": {
                                "_id": None,
                                "averageScore": {"$avg": "$profile_score"},
                                "minScore": {"$min": "$profile_score"},
                                "maxScore": {"$max": "$profile_score"},
                            }
                        }
                    ],
                }
            }
        ]

    def from_facet(self, facet: Optional[Dict[str, Any]]) -> UserStats:
        facet = facet or {}
        total = _first(facet, "totalCount").get("count", 0)
        active = _first(facet, "activeCount").get("count", 0)
        age_stats = _first(facet, "ageStats")
        scores = _first(facet, "profileScores")

        groups = [
            AgeGroup(
                bucket=row["_id"],
                count=row.get("count", 0),
                users=[AgeGroupMember(**u) for u in row.get("users", [])],
            )
            for row in facet.get("ageGroups") or []
        ]
        popular = [HobbyCount(hobby=row["_id"], count=row["count"]) for row in facet.get("popularHobbies") or []]

        return UserStats(
            totals=StatsTotals(users=total, active=active, inactive=total - active),
            age=AgeStats(
                average=age_stats.get("averageAge") or 0,
                min=age_stats.get("minAge") or 0,
                max=age_stats.get("maxAge") or 0,
                groups=groups,
            ),
            hobbies=HobbyStats(popular=popular),
            profile=ProfileStats(
                average_score=scores.get("averageScore") or 0,
                min_score=scores.get("minScore") or 0,
                max_score=scores.get("maxScore") or 0,
            ),
        )

    # ---- 파이썬 직접 계산 ----

    def bucket_for(self, age: int) -> Union[int, str]:
        for lower, upper in zip(self.boundaries, self.boundaries[1:]):
            if lower <= age < upper:
                return lower
        return self.overflow_bucket

    def evaluate(self, records: Iterable[UserRecord]) -> UserStats:
        records = list(records)
        total = len(records)
        active = sum(1 for r in records if r.is_active)

        ages = [r.age for r in records if r.age is not None]

        hobby_counts = Counter(h for r in records for h in r.hobbies)
        popular = sorted(hobby_counts.items(), key=lambda item: (-item[1], item[0]))[: self.hobby_limit]

        buckets: Dict[Union[int, str], List[AgeGroupMember]] = {}
        for r in records:
            if r.age is None:
                continue
            buckets.setdefault(self.bucket_for(r.age), []).append(AgeGroupMember(name=r.name, age=r.age))
        order = self.boundaries[:-1] + [self.overflow_bucket]
        groups = [
            AgeGroup(bucket=key, count=len(buckets[key]), users=buckets[key])
            for key in order
            if key in buckets
        ]

        scores = [r.profile_score for r in records]

        return UserStats(
            totals=StatsTotals(users=total, active=active, inactive=total - active),
            age=AgeStats(
                average=sum(ages) / len(ages) if ages else 0,
                min=min(ages, default=0),
                max=max(ages, default=0),
                groups=groups,
            ),
            hobbies=HobbyStats(popular=[HobbyCount(hobby=h, count=c) for h, c in popular]),
            profile=ProfileStats(
                average_score=sum(scores) / len(scores) if scores else 0,
                min_score=min(scores, default=0),
                max_score=max(scores, default=0),
            ),
        )


def compute_stats(records: Iterable[UserRecord]) -> UserStats:
    return UserStatsPipeline().evaluate(records)
