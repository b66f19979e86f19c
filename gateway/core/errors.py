"""
Error taxonomy shared by services and HTTP handlers.

Every error carries the HTTP status, the public error code and a
client-facing description. Handlers in ``gateway.main`` render them as
``{"error": {"code": ..., "description": ...}}``.
"""
from typing import Any, Dict


class GatewayError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, description: str, code: str = None):
        super().__init__(description)
        self.description = description
        if code is not None:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": {"code": self.code, "description": self.description}}


class BadRequestError(GatewayError):
    status_code = 400
    code = "BAD_REQUEST_ERROR"


class PaymentValidationError(BadRequestError):
    """Method-specific input rejected (INVALID_VPA, INVALID_CARD, EXPIRED_CARD)."""


class AuthenticationError(GatewayError):
    status_code = 401
    code = "AUTHENTICATION_ERROR"


class NotFoundError(GatewayError):
    status_code = 404
    code = "NOT_FOUND_ERROR"


class InternalError(GatewayError):
    status_code = 500
    code = "INTERNAL_ERROR"
