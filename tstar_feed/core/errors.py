# tstar_feed/core/errors.py
"""
피드 서비스 공통 예외 클래스

- ContentRejectedError: 저장 시도 전에 거부되는 입력 (빈 글, 금칙어, 빈 댓글)
- CloudOperationError: 클라우드 백엔드 호출 실패. 쓰기 작업은 로컬 폴백으로 처리됩니다.
- AuthenticationError: 로그인/가입 실패. 폴백 없이 사용자에게 그대로 노출됩니다.
"""
from typing import Optional, Dict, Any


class FeedError(Exception):
    """피드 서비스 예외의 기본 클래스"""
    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """API 응답에 사용하는 표준 에러 형식으로 변환"""
        body: Dict[str, Any] = {"error_code": self.code, "message": str(self)}
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(FeedError):
    """설정 값 또는 환경 변수가 잘못된 경우"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class ContentRejectedError(FeedError):
    """입력 검증에 실패한 경우. 어떤 저장소에도 쓰기 전에 발생합니다."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONTENT_REJECTED", details=details)


class CloudOperationError(FeedError):
    """클라우드 백엔드(Firestore/Storage) 호출이 실패한 경우"""
    def __init__(self, operation: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CLOUD_OPERATION_FAILED", details=details)
        self.operation = operation


class BlobUploadError(CloudOperationError):
    """이미지 업로드 실패"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("upload_image", message, details=details)
        self.code = "BLOB_UPLOAD_FAILED"


class AuthenticationError(FeedError):
    """가입/로그인 실패"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", details=details)
