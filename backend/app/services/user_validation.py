# 사용자 입력 검증 엔진
# - 순수 함수: DB 접근 없음, 부작용 없음
# - 필드별 순서: 필수값 확인 → 정규화(trim/lowercase) → 형식 검사 → 의미 검사
# - 필드 하나에서는 첫 에러에서 멈추고, 필드들 사이에서는 에러를 모아서 한 번에 돌려줌

import re
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional

from ..core.config import settings
from ..core.exceptions import FieldValidationError, MalformedRequestError

ValidationMode = Literal["create", "update"]

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
AGE_MIN = 13
AGE_MAX = 120
HOBBY_MIN_LENGTH = 2
HOBBY_MAX_LENGTH = 50
MAX_HOBBIES = 10

NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']{2,100}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

REQUIRED_ON_CREATE = ("name", "email")


class _Rejected(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_name(value: Any) -> str:
    if _is_blank(value):
        raise _Rejected("Name is required")
    if not isinstance(value, str):
        raise _Rejected("Name must be a string")
    name = value.strip()
    if len(name) < NAME_MIN_LENGTH:
        raise _Rejected("Name must be at least 2 characters long")
    if len(name) > NAME_MAX_LENGTH:
        raise _Rejected("Name cannot exceed 100 characters")
    if not NAME_PATTERN.match(name):
        raise _Rejected(f"{name} is not a valid name!")
    return name


def _check_email(value: Any, disposable_domains: Iterable[str]) -> str:
    if _is_blank(value):
        raise _Rejected("Email is required")
    if not isinstance(value, str):
        raise _Rejected("Email must be a string")
    email = value.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise _Rejected("Please enter a valid email address")
    domain = email.split("@", 1)[1]
    if domain in disposable_domains:
        raise _Rejected("Disposable email addresses are not allowed")
    return email


def _check_age(value: Any) -> Optional[int]:
    # None은 "나이 미입력"으로, 0과는 다르게 취급합니다
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise _Rejected("Age must be a whole number")
    if value < AGE_MIN:
        raise _Rejected("Age must be at least 13")
    if value > AGE_MAX:
        raise _Rejected("Age cannot exceed 120 years")
    return value


def _check_hobby(value: Any) -> str:
    if not isinstance(value, str):
        raise _Rejected("Hobby must be a string")
    hobby = value.strip()
    if len(hobby) < HOBBY_MIN_LENGTH:
        raise _Rejected("Hobby must be at least 2 characters")
    if len(hobby) > HOBBY_MAX_LENGTH:
        raise _Rejected("Hobby cannot exceed 50 characters")
    return hobby


def _check_hobbies(value: Any) -> List[str]:
    if value is None or not isinstance(value, (list, tuple)):
        raise _Rejected("Hobbies must be a list of strings")
    hobbies = [_check_hobby(h) for h in value]
    if len(hobbies) > MAX_HOBBIES:
        raise _Rejected("Cannot have more than 10 hobbies")
    return hobbies


def _check_is_active(value: Any) -> bool:
    if not isinstance(value, bool):
        raise _Rejected("isActive must be a boolean")
    return value


def validate_user(
    candidate: Dict[str, Any],
    mode: ValidationMode = "create",
    disposable_domains: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    """
    후보 레코드를 검증하고 정규화된 dict를 반환합니다.

    주니어 개발자님께:
    - mode="create": name, email이 반드시 있어야 하며, 없는 선택 필드는 기본값으로 채웁니다.
    - mode="update": 요청에 들어온 필드만 검사하고, 들어온 필드만 반환합니다.
    - 알 수 없는 키(profile_score, created_at 등)는 조용히 버립니다.
      profile_score는 저장 직전에 항상 다시 계산되기 때문입니다.

    Raises:
        FieldValidationError: 필드 이름 -> 메시지 매핑을 담은 예외
    """
    domains = {d.lower() for d in (settings.disposable_domains if disposable_domains is None else disposable_domains)}

    checks: Dict[str, Callable[[Any], Any]] = {
        "name": _check_name,
        "email": lambda v: _check_email(v, domains),
        "age": _check_age,
        "hobbies": _check_hobbies,
        "is_active": _check_is_active,
    }

    errors: Dict[str, str] = {}
    normalized: Dict[str, Any] = {}

    for field, check in checks.items():
        if field not in candidate:
            if mode == "create" and field in REQUIRED_ON_CREATE:
                errors[field] = f"{field.capitalize()} is required"
            continue
        try:
            normalized[field] = check(candidate[field])
        except _Rejected as e:
            errors[field] = e.message

    if errors:
        raise FieldValidationError(errors)

    if mode == "create":
        normalized.setdefault("age", None)
        normalized.setdefault("hobbies", [])
        normalized.setdefault("is_active", True)

    return normalized


def validate_hobby(value: Any) -> str:
    """단일 취미 추가/삭제용 검증 (trim 후 길이 검사)"""
    try:
        return _check_hobby(value)
    except _Rejected as e:
        raise FieldValidationError({"hobby": e.message})


def validate_object_id(value: Any) -> str:
    # 주니어 개발자님께: MongoDB ObjectId는 24자리 16진수 문자열입니다.
    # 형식이 틀리면 DB까지 가지 않고 여기서 바로 거절합니다.
    if not isinstance(value, str) or not OBJECT_ID_PATTERN.match(value):
        raise MalformedRequestError("Invalid user ID format")
    return value.lower()
