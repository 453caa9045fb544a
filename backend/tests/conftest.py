# 테스트 공통 설정
# - MongoDB 없이 메모리 저장소로 앱을 띄웁니다 (app 임포트 전에 환경변수 설정)

import os

os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.repositories.memory_store import InMemoryUserStore
from app.repositories.user_repository import get_user_store
from app.services.user_service import UserService


@pytest.fixture
def store():
    return InMemoryUserStore()


@pytest.fixture
def service(store):
    return UserService(store)


@pytest.fixture
def client(store):
    # 테스트마다 새 저장소를 주입해 서로 데이터가 섞이지 않게 함
    app.dependency_overrides[get_user_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
