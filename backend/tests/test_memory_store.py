# 메모리 저장소 테스트 (쿼리 빌더가 만든 필터가 MongoDB와 같은 의미로 동작하는지)
import asyncio

import pytest

from app.core.exceptions import UniqueConstraintViolation
from app.models.user import UserRecord
from app.repositories.memory_store import InMemoryUserStore, matches
from app.services.query_builder import build_list_query, build_search_query


def _user(name, email, age=None, hobbies=(), active=True):
    return UserRecord(name=name, email=email, age=age, hobbies=list(hobbies), is_active=active)


@pytest.fixture
def seeded():
    return InMemoryUserStore([
        _user("Ann Lee", "ann@example.com", 25, ["chess", "reading"]),
        _user("Bob Stone", "bob@example.com", 40, ["Chess Club"], active=False),
        _user("Cid", "cid@sample.org", None, ["surfing"]),
    ])


def _names(users):
    return sorted(u.name for u in users)


def test_matches_operators():
    doc = {"name": "Ann", "age": 25, "hobbies": ["chess", "reading"], "is_active": True}
    assert matches(doc, {"name": {"$regex": "an", "$options": "i"}})
    assert not matches(doc, {"name": {"$regex": "an"}})
    assert matches(doc, {"age": {"$gte": 25, "$lte": 30}})
    assert not matches({"age": None}, {"age": {"$gte": 1}})
    assert matches(doc, {"hobbies": "chess"})
    assert not matches(doc, {"hobbies": "Chess"})
    assert matches(doc, {"$or": [{"name": "Zed"}, {"hobbies": {"$regex": "read", "$options": "i"}}]})


def test_find_many_with_list_query(seeded):
    query = build_list_query({"minAge": "20", "isActive": "true"})
    users, total = asyncio.run(seeded.find_many(query.predicate, query.sort, query.skip, query.limit))
    assert total == 1
    assert users[0].name == "Ann Lee"


def test_hobby_search_is_case_insensitive_substring(seeded):
    predicate = build_search_query("chess", "hobby")
    users, total = asyncio.run(seeded.find_many(predicate, [("_id", 1)], 0, 50))
    assert _names(users) == ["Ann Lee", "Bob Stone"]


def test_email_filter_is_exact_ignoring_case(seeded):
    query = build_list_query({"email": "ANN@example.com"})
    users, _ = asyncio.run(seeded.find_many(query.predicate, query.sort))
    assert _names(users) == ["Ann Lee"]
    query = build_list_query({"email": "ann@example"})
    users, _ = asyncio.run(seeded.find_many(query.predicate, query.sort))
    assert users == []


def test_sort_and_paginate(seeded):
    query = build_list_query({"sortBy": "age", "order": "asc", "limit": "2", "page": "1"})
    users, total = asyncio.run(seeded.find_many(query.predicate, query.sort, query.skip, query.limit))
    assert total == 3
    # 나이 없음(None)이 오름차순 맨 앞
    assert [u.name for u in users] == ["Cid", "Ann Lee"]


def test_insert_enforces_unique_email(seeded):
    with pytest.raises(UniqueConstraintViolation):
        asyncio.run(seeded.insert(_user("Ann Two", "ann@example.com")))


def test_concurrent_inserts_with_same_email():
    store = InMemoryUserStore()

    async def race():
        return await asyncio.gather(
            store.insert(_user("Ann", "same@example.com")),
            store.insert(_user("Bob", "same@example.com")),
            return_exceptions=True,
        )

    results = asyncio.run(race())
    assert sum(isinstance(r, UserRecord) for r in results) == 1
    assert sum(isinstance(r, UniqueConstraintViolation) for r in results) == 1


def test_update_and_delete(seeded):
    ann = asyncio.run(seeded.find_one({"email": "ann@example.com"}))
    updated = asyncio.run(seeded.update_by_id(ann.id, {"age": 26}))
    assert updated.age == 26
    with pytest.raises(UniqueConstraintViolation):
        asyncio.run(seeded.update_by_id(ann.id, {"email": "bob@example.com"}))
    assert asyncio.run(seeded.delete_by_id(ann.id)).name == "Ann Lee"
    assert asyncio.run(seeded.get(ann.id)) is None
    assert asyncio.run(seeded.update_by_id(ann.id, {"age": 30})) is None


def test_returned_records_are_copies(seeded):
    ann = asyncio.run(seeded.find_one({"email": "ann@example.com"}))
    internal = seeded._records[ann.id]

    fetched = asyncio.run(seeded.get(ann.id))
    fetched.hobbies.append("golf")
    assert internal.hobbies == ["chess", "reading"]

    deleted = asyncio.run(seeded.delete_by_id(ann.id))
    assert deleted is not internal
    assert deleted.hobbies is not internal.hobbies
