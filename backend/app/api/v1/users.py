# 사용자 라우터
# - GET    /api/v1/users                      : 목록 (필터/정렬/페이지네이션)
# - GET    /api/v1/users/search               : 검색 (q, field=name|email|hobby|all, 최대 50건)
# - GET    /api/v1/users/stats                : 통계
# - GET    /api/v1/users/{id}                 : 단건 조회
# - POST   /api/v1/users                      : 생성
# - PUT    /api/v1/users/{id}                 : 수정 (보낸 필드만)
# - DELETE /api/v1/users/{id}                 : 삭제
# - POST   /api/v1/users/{id}/hobbies         : 취미 추가
# - DELETE /api/v1/users/{id}/hobbies/{hobby} : 취미 삭제
#
# 주의: /search, /stats는 /{id}보다 먼저 등록해야 합니다.

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...schemas.user_schema import (
    AppliedFilters,
    HobbyRequest,
    Pagination,
    SearchMeta,
    UserCreate,
    UserListResponse,
    UserPublic,
    UserResponse,
    UserSearchResponse,
    UserStatsResponse,
    UserUpdate,
)
from ...services.user_service import UserService, get_user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse, summary="사용자 목록 (필터/정렬/페이지네이션)")
async def list_users(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = None,
    name: Optional[str] = None,
    email: Optional[str] = None,
    min_age: Optional[str] = Query(None, alias="minAge"),
    max_age: Optional[str] = Query(None, alias="maxAge"),
    hobby: Optional[str] = None,
    is_active: Optional[str] = Query(None, alias="isActive"),
    service: UserService = Depends(get_user_service),
):
    # 숫자 파라미터도 문자열로 받아 쿼리 빌더에서 직접 검사합니다 (잘못된 값은 400)
    params = {
        "page": page, "limit": limit, "sortBy": sort_by, "order": order,
        "name": name, "email": email, "minAge": min_age, "maxAge": max_age,
        "hobby": hobby, "isActive": is_active,
    }
    users, pagination, predicate = await service.list_users(params)
    return UserListResponse(
        message="Users retrieved successfully",
        data=[UserPublic.from_record(u) for u in users],
        pagination=Pagination(**pagination),
        filters=AppliedFilters(applied=bool(predicate), details=predicate),
    )


@router.get("/search", response_model=UserSearchResponse, summary="사용자 검색 (최대 50건)")
async def search_users(
    q: Optional[str] = None,
    field: str = "all",
    service: UserService = Depends(get_user_service),
):
    users = await service.search_users(q, field)
    return UserSearchResponse(
        message=f'Found {len(users)} user(s) matching "{q}" in {field}',
        data=[UserPublic.from_record(u) for u in users],
        search=SearchMeta(query=q, field=field, results=len(users)),
    )


@router.get("/stats", response_model=UserStatsResponse, summary="사용자 통계")
async def user_stats(service: UserService = Depends(get_user_service)):
    stats = await service.get_stats()
    return UserStatsResponse(message="User statistics retrieved successfully", data=stats)


@router.get("/{user_id}", response_model=UserResponse, summary="사용자 단건 조회")
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    user = await service.get_user(user_id)
    return UserResponse(message="User retrieved successfully", data=UserPublic.from_record(user))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED, summary="사용자 생성")
async def create_user(payload: UserCreate, service: UserService = Depends(get_user_service)):
    user = await service.create_user(payload.to_candidate())
    return UserResponse(message="User created successfully", data=UserPublic.from_record(user))


@router.put("/{user_id}", response_model=UserResponse, summary="사용자 수정 (보낸 필드만 반영)")
async def update_user(user_id: str, payload: UserUpdate, service: UserService = Depends(get_user_service)):
    user = await service.update_user(user_id, payload.to_candidate())
    return UserResponse(message="User updated successfully", data=UserPublic.from_record(user))


@router.delete("/{user_id}", response_model=UserResponse, summary="사용자 삭제")
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    user = await service.delete_user(user_id)
    return UserResponse(message="User deleted successfully", data=UserPublic.from_record(user))


@router.post("/{user_id}/hobbies", response_model=UserResponse, summary="취미 추가 (이미 있으면 변화 없음)")
async def add_hobby(user_id: str, payload: HobbyRequest, service: UserService = Depends(get_user_service)):
    user = await service.add_hobby(user_id, payload.hobby)
    return UserResponse(message="Hobby added successfully", data=UserPublic.from_record(user))


@router.delete("/{user_id}/hobbies/{hobby}", response_model=UserResponse, summary="취미 삭제")
async def remove_hobby(user_id: str, hobby: str, service: UserService = Depends(get_user_service)):
    user = await service.remove_hobby(user_id, hobby)
    return UserResponse(message="Hobby removed successfully", data=UserPublic.from_record(user))
