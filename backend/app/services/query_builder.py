# 목록/검색 쿼리 빌더
# - 쿼리스트링(문자열) → MongoDB 필터(dict) + 정렬 + 페이지네이션
# - 숫자/불리언 파라미터가 잘못되면 0이나 기본값으로 바꾸지 않고 MalformedRequestError로 거절
# - 사용자가 입력한 문자열은 re.escape로 이스케이프한 뒤 $regex에 넣습니다

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pymongo

from ..core.config import settings
from ..core.exceptions import MalformedRequestError

# 공개 API 필드명(camelCase) → 저장 필드명(snake_case)
SORTABLE_FIELDS = {
    "name": "name",
    "email": "email",
    "age": "age",
    "hobbies": "hobbies",
    "isActive": "is_active",
    "profileScore": "profile_score",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
SEARCH_FIELDS = ("name", "email", "hobby", "all")

DEFAULT_SORT_BY = "createdAt"
DEFAULT_ORDER = "desc"

_TRUE_VALUES = {"true", "1"}
_FALSE_VALUES = {"false", "0"}

SortSpec = List[Tuple[str, int]]


@dataclass
class ListQuery:
    predicate: Dict[str, Any] = field(default_factory=dict)
    sort: SortSpec = field(default_factory=list)
    page: int = 1
    limit: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _param(params: Mapping[str, Optional[str]], key: str) -> Optional[str]:
    value = params.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_int(params: Mapping[str, Optional[str]], key: str, minimum: Optional[int] = None) -> Optional[int]:
    raw = _param(params, key)
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise MalformedRequestError(f"'{key}' must be an integer", errors={key: f"'{raw}' is not a valid integer"})
    if minimum is not None and value < minimum:
        raise MalformedRequestError(f"'{key}' must be at least {minimum}", errors={key: f"must be >= {minimum}"})
    return value


def _parse_bool(params: Mapping[str, Optional[str]], key: str) -> Optional[bool]:
    raw = _param(params, key)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise MalformedRequestError(f"'{key}' must be true or false", errors={key: f"'{raw}' is not a boolean"})


def contains(text: str) -> Dict[str, str]:
    """대소문자 무시 부분 일치"""
    return {"$regex": re.escape(text), "$options": "i"}


def equals_ignore_case(text: str) -> Dict[str, str]:
    return {"$regex": f"^{re.escape(text)}$", "$options": "i"}


def build_sort(sort_by: Optional[str], order: Optional[str]) -> SortSpec:
    sort_by = sort_by or DEFAULT_SORT_BY
    order = (order or DEFAULT_ORDER).lower()

    if sort_by not in SORTABLE_FIELDS:
        raise MalformedRequestError(
            "Invalid sort field",
            errors={"sortBy": f"'{sort_by}' is not sortable"},
            validFields=list(SORTABLE_FIELDS),
        )
    if order not in ("asc", "desc"):
        raise MalformedRequestError("Invalid sort order", errors={"order": "must be 'asc' or 'desc'"})

    direction = pymongo.DESCENDING if order == "desc" else pymongo.ASCENDING
    # _id를 보조 정렬 키로 붙여 같은 값끼리도 페이지 간 순서가 고정되도록 함
    return [(SORTABLE_FIELDS[sort_by], direction), ("_id", direction)]


def build_predicate(params: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    predicate: Dict[str, Any] = {}

    name = _param(params, "name")
    if name:
        predicate["name"] = contains(name)

    email = _param(params, "email")
    if email:
        predicate["email"] = equals_ignore_case(email)

    min_age = _parse_int(params, "minAge")
    max_age = _parse_int(params, "maxAge")
    if min_age is not None and max_age is not None and min_age > max_age:
        raise MalformedRequestError("'minAge' cannot be greater than 'maxAge'", errors={"minAge": "must be <= maxAge"})
    if min_age is not None or max_age is not None:
        age: Dict[str, int] = {}
        if min_age is not None:
            age["$gte"] = min_age
        if max_age is not None:
            age["$lte"] = max_age
        predicate["age"] = age

    hobby = _param(params, "hobby")
    if hobby:
        predicate["hobbies"] = hobby

    is_active = _parse_bool(params, "isActive")
    if is_active is not None:
        predicate["is_active"] = is_active

    return predicate


def build_list_query(
    params: Mapping[str, Optional[str]],
    default_page_size: Optional[int] = None,
) -> ListQuery:
    """
    목록 조회 파라미터를 ListQuery로 변환합니다.

    지원 파라미터: page, limit, sortBy, order, name, email, minAge, maxAge, hobby, isActive
    limit은 1 이상이면 상한 없이 그대로 사용합니다.
    """
    default_page_size = default_page_size or settings.DEFAULT_PAGE_SIZE

    page = _parse_int(params, "page", minimum=1) or 1
    limit = _parse_int(params, "limit", minimum=1) or default_page_size

    return ListQuery(
        predicate=build_predicate(params),
        sort=build_sort(_param(params, "sortBy"), _param(params, "order")),
        page=page,
        limit=limit,
    )


def build_search_query(q: Optional[str], field: Optional[str] = "all") -> Dict[str, Any]:
    if q is None or not q.strip():
        raise MalformedRequestError("Search query (q) is required", errors={"q": "required"})
    field = (field or "all").strip()
    if field not in SEARCH_FIELDS:
        raise MalformedRequestError("Invalid search field", validFields=list(SEARCH_FIELDS))

    regex = contains(q.strip())
    if field == "name":
        return {"name": regex}
    if field == "email":
        return {"email": regex}
    if field == "hobby":
        return {"hobbies": regex}
    return {"$or": [{"name": regex}, {"email": regex}, {"hobbies": regex}]}


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "pageSize": limit,
        "totalUsers": total,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPreviousPage": page > 1,
    }
