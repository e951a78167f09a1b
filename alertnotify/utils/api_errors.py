from __future__ import annotations

from fastapi import HTTPException


class AppHTTPError(HTTPException):
    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None):
        super().__init__(status_code=status_code, detail={
            "code": code,
            "message": message,
            "details": details or {},
        })


def bad_request(code: str, message: str, details: dict | None = None) -> AppHTTPError:
    return AppHTTPError(400, code, message, details)


def template_expansion_failed(error: BaseException) -> AppHTTPError:
    cause = error.__cause__ or error
    return AppHTTPError(422, "TEMPLATE_EXPANSION_FAILED", str(error), {"error_type": type(cause).__name__})


def template_load_failed(error: BaseException) -> AppHTTPError:
    return AppHTTPError(500, "TEMPLATE_LOAD_FAILED", "Notification templates could not be loaded",
                        {"reason": str(error)})
