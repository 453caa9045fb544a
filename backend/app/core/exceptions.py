# 커스텀 예외 클래스 정의
# 주니어 개발자님께: Python에서는 표준 예외(Exception)를 상속받아
# 프로젝트에 특화된 예외를 만들 수 있습니다.
# 검증/조회/저장 단계는 예외를 삼키지 않고 그대로 올려 보내며,
# main.py의 예외 핸들러가 status_code를 보고 HTTP 응답으로 바꿉니다.

from typing import Any, Dict, Optional


class UserServiceError(Exception):
    """사용자 서비스 관련 기본 예외 클래스

    주니어 개발자님께: 모든 사용자 관련 예외의 기본 클래스입니다.
    이렇게 하면 try-except 블록에서 특정 타입의 에러만 잡을 수 있습니다.

    Attributes:
        message: 사람이 읽을 수 있는 에러 메시지
        errors: 필드 이름 -> 에러 메시지 (필드 단위 에러가 있는 경우)
        extra: 응답에 함께 실어 보낼 추가 정보
    """
    status_code: int = 500

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None, **extra: Any):
        self.message = message
        self.errors = errors
        self.extra = extra
        super().__init__(message)


class FieldValidationError(UserServiceError):
    """입력 값이 필드 규칙을 위반했을 때 발생하는 예외

    주니어 개발자님께: 한 번에 여러 필드의 에러를 모아서 돌려줍니다.
    예: {"name": "Name is required", "age": "Age must be at least 13"}
    """
    status_code = 400

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed"):
        super().__init__(message, errors=dict(errors))


class NotFoundError(UserServiceError):
    status_code = 404

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class ConflictError(UserServiceError):
    """이메일 중복 등으로 쓰기가 충돌했을 때 발생하는 예외"""
    status_code = 409

    def __init__(self, message: str = "User with this email already exists", field: str = "email"):
        super().__init__(message, errors={field: f"This {field} already exists"}, conflictField=field)


class MalformedRequestError(UserServiceError):
    """요청 파라미터 자체가 잘못된 경우 (ID 형식, 검색어 누락, 허용되지 않는 값 등)"""
    status_code = 400


class InternalError(UserServiceError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class UniqueConstraintViolation(Exception):
    """저장소 계층에서 unique 인덱스 위반 시 발생하는 예외

    주니어 개발자님께: 저장소(MongoDB 또는 메모리)가 직접 던지는 예외입니다.
    서비스 레이어가 이를 잡아서 ConflictError로 바꿉니다.
    동시에 같은 이메일로 가입 요청이 들어와도 하나만 성공하게 됩니다.
    """
    def __init__(self, field: str = "email", value: Any = None):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for unique field '{field}': {value}")
