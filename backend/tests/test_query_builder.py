# 쿼리 빌더 유닛 테스트
import pymongo
import pytest

from app.core.exceptions import MalformedRequestError
from app.services.query_builder import (
    build_list_query,
    build_pagination,
    build_search_query,
)


def test_defaults():
    query = build_list_query({})
    assert query.predicate == {}
    assert query.page == 1
    assert query.limit == 10
    assert query.skip == 0
    assert query.sort == [("created_at", pymongo.DESCENDING), ("_id", pymongo.DESCENDING)]


def test_all_filters():
    query = build_list_query({
        "name": "ann",
        "email": "Ann@Example.com",
        "minAge": "18",
        "maxAge": "30",
        "hobby": "chess",
        "isActive": "false",
        "page": "3",
        "limit": "5",
        "sortBy": "profileScore",
        "order": "asc",
    })
    assert query.predicate == {
        "name": {"$regex": "ann", "$options": "i"},
        "email": {"$regex": r"^Ann@Example\.com$", "$options": "i"},
        "age": {"$gte": 18, "$lte": 30},
        "hobbies": "chess",
        "is_active": False,
    }
    assert query.skip == 10
    assert query.sort[0] == ("profile_score", pymongo.ASCENDING)


def test_single_age_bound():
    assert build_list_query({"minAge": "21"}).predicate == {"age": {"$gte": 21}}
    assert build_list_query({"maxAge": "65"}).predicate == {"age": {"$lte": 65}}


def test_blank_params_are_ignored():
    assert build_list_query({"name": "", "hobby": "  ", "page": None}).predicate == {}


def test_user_text_is_escaped():
    query = build_list_query({"name": "a.*b"})
    assert query.predicate["name"]["$regex"] == r"a\.\*b"


def test_large_limit_is_accepted():
    query = build_list_query({"limit": "500", "page": "2"})
    assert query.limit == 500
    assert query.skip == 500


@pytest.mark.parametrize(
    "params",
    [
        {"page": "abc"},
        {"page": "0"},
        {"limit": "-1"},
        {"limit": "1.5"},
        {"minAge": "old"},
        {"maxAge": "NaN"},
        {"minAge": "40", "maxAge": "20"},
        {"isActive": "maybe"},
        {"sortBy": "password"},
        {"order": "sideways"},
    ],
)
def test_malformed_params_rejected(params):
    with pytest.raises(MalformedRequestError):
        build_list_query(params)


@pytest.mark.parametrize("field, key", [("name", "name"), ("email", "email"), ("hobby", "hobbies")])
def test_search_single_field(field, key):
    assert build_search_query("Chess", field) == {key: {"$regex": "Chess", "$options": "i"}}


def test_search_all_fields():
    regex = {"$regex": "ann", "$options": "i"}
    assert build_search_query("ann") == {"$or": [{"name": regex}, {"email": regex}, {"hobbies": regex}]}


def test_search_requires_query():
    for q in (None, "", "   "):
        with pytest.raises(MalformedRequestError) as exc:
            build_search_query(q, "all")
        assert exc.value.message == "Search query (q) is required"


def test_search_invalid_field():
    with pytest.raises(MalformedRequestError) as exc:
        build_search_query("ann", "age")
    assert exc.value.extra["validFields"] == ["name", "email", "hobby", "all"]


@pytest.mark.parametrize(
    "page, limit, total, pages, has_next, has_prev",
    [
        (1, 10, 0, 0, False, False),
        (1, 10, 10, 1, False, False),
        (1, 10, 11, 2, True, False),
        (2, 10, 11, 2, False, True),
        (3, 5, 23, 5, True, True),
    ],
)
def test_pagination(page, limit, total, pages, has_next, has_prev):
    meta = build_pagination(page, limit, total)
    assert meta["totalPages"] == pages
    assert meta["hasNextPage"] is has_next
    assert meta["hasPreviousPage"] is has_prev
    assert meta["totalUsers"] == total
