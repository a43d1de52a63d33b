"""Base domain exceptions.

所有领域异常都应继承自 DomainException，并可以通过定义 http_status_code 和 error_code
类属性来指定 HTTP 响应细节。
"""

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain errors.

    子类可以通过定义以下类属性来自定义 HTTP 响应：
    - http_status_code: HTTP 状态码（默认 400）
    - error_code: 错误代码字符串（默认 "DOMAIN_ERROR"）
    - public_message: 返回给客户端的消息（默认使用 message）
    """

    http_status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "DOMAIN_ERROR"
    public_message: str | None = None

    def __init__(self, message: str = "A domain error occurred"):
        self.message = message
        super().__init__(self.message)

    @property
    def client_message(self) -> str:
        """Message safe to expose in an HTTP response."""
        return self.public_message or self.message


class ValidationError(DomainException):
    """Raised when validation fails."""

    http_status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class ExternalServiceError(DomainException):
    """Raised when a collaborator outside the process misbehaves."""

    http_status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "EXTERNAL_SERVICE_ERROR"
    public_message = "An external service failed"
