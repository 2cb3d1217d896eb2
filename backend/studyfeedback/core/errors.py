# backend/studyfeedback/core/errors.py
"""
Error taxonomy for the feedback service.

CRUD functions raise these; the handlers registered in main.py turn them
into the ``{"success": false, "message": ...}`` envelope with the matching
HTTP status.
"""

from typing import Any, Dict, List, Optional


class FeedbackServiceError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_content(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


class ValidationError(FeedbackServiceError):
    """Field-level validation failure (400)."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        errors: Optional[List[Dict[str, str]]] = None,
        message: Optional[str] = None,
    ):
        super().__init__(message)
        # [{"field": "text", "message": "..."}]
        self.errors = errors or []

    def to_content(self) -> Dict[str, Any]:
        content = super().to_content()
        content["errors"] = self.errors
        return content


class AuthenticationRequired(FeedbackServiceError):
    status_code = 401
    default_message = "Authentication required"


class NotAuthorized(FeedbackServiceError):
    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFound(FeedbackServiceError):
    status_code = 404
    default_message = "Feedback not found"


class UnexpectedFailure(FeedbackServiceError):
    """Logged server-side; callers only ever see the generic message."""

    status_code = 500


def field_errors(raw_errors) -> List[Dict[str, str]]:
    """
    pydantic 의 errors() 결과를 [{"field", "message"}] 목록으로 변환.
    요청 위치 접두어(body/query/path)는 제거합니다.
    """
    converted = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        converted.append({
            "field": ".".join(loc) or "__root__",
            "message": err.get("msg", "Invalid value"),
        })
    return converted
