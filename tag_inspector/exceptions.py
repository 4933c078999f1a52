"""
tag_inspector/exceptions.py - 통합 예외 계층 구조

설정 로드와 외부 협력자 호출에서 발생하는 예외를 정의합니다.
태그 평가 자체는 예외를 던지지 않고 위반 문자열로 결과를 보고합니다.

예외 계층 구조:
    TagInspectorError (베이스)
    ├── ConfigError (설정 형식 오류)
    ├── ValidationError (필드 값 오류)
    └── APICallError (AWS API 호출 실패)
        └── ExclusionLookupError (제외 정책 조회 실패)

Usage:
    from tag_inspector.exceptions import ExclusionLookupError

    try:
        excluded, reason = policy.is_excluded("ec2:instance", "i-0abc")
    except ExclusionLookupError as e:
        print(e.to_dict())
"""

from typing import Any, Dict, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class TagInspectorError(Exception):
    """Tag Inspector 기본 예외 클래스

    모든 커스텀 예외의 베이스 클래스입니다.

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(TagInspectorError):
    """설정 관련 예외"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


class ValidationError(TagInspectorError):
    """입력 검증 오류"""

    def __init__(
        self,
        field: str,
        value: Any,
        expected: str,
        cause: Optional[Exception] = None,
    ):
        message = f"검증 오류 [{field}]: 예상값 '{expected}', 실제값 '{value}'"
        super().__init__(message, cause)
        self.field = field
        self.value = value
        self.expected = expected
        self.details.update(
            {
                "field": field,
                "value": str(value),
                "expected": expected,
            }
        )


# =============================================================================
# AWS API 관련 예외
# =============================================================================


class APICallError(TagInspectorError):
    """AWS API 호출 관련 예외

    boto3/botocore의 ClientError를 래핑하여 일관된 예외 처리를 제공합니다.
    """

    def __init__(
        self,
        service: str,
        operation: str,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        message = f"{service}.{operation}"
        if error_code:
            message = f"{message} 실패 ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "service": service,
                "operation": operation,
                "error_code": error_code,
            }
        )

    @classmethod
    def from_client_error(
        cls,
        service: str,
        operation: str,
        client_error: Exception,
    ) -> "APICallError":
        """botocore.exceptions.ClientError로부터 생성

        Args:
            service: AWS 서비스 이름
            operation: API 작업 이름
            client_error: ClientError 예외

        Returns:
            APICallError (또는 서브클래스) 인스턴스
        """
        error_code = None
        error_message = None

        # ClientError 형식 파싱
        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")

        return cls(
            service=service,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=client_error,
        )


class ExclusionLookupError(APICallError):
    """제외 정책 설정 소스 조회 실패

    제외 여부를 판단할 수 없는 상태이므로 위반 항목으로 바꾸지 않고
    호출자에게 그대로 전달합니다.
    """


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================

# SSM GetParameter가 반환하는 오류 코드
_ACCESS_DENIED_CODES = {
    "AccessDeniedException",
}

_NOT_FOUND_CODES = {
    "ParameterNotFound",
    "ParameterVersionNotFound",
}


def _error_code(error: Exception) -> str:
    if isinstance(error, APICallError):
        return error.error_code or ""

    # botocore ClientError 직접 확인
    if hasattr(error, "response"):
        return error.response.get("Error", {}).get("Code", "")

    return ""


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인

    Args:
        error: 확인할 예외

    Returns:
        액세스 거부 오류이면 True
    """
    return _error_code(error) in _ACCESS_DENIED_CODES


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인

    Args:
        error: 확인할 예외

    Returns:
        리소스 없음 오류이면 True
    """
    return _error_code(error) in _NOT_FOUND_CODES
