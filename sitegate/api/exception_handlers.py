from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sitegate.auth.users import UnauthorizedError
from sitegate.schemas import ErrorResponse
from sitegate.storage.base import StorageFailedError


def _request_id_from_state(request: Request) -> str:
    value = getattr(request.state, "request_id", "")
    return value if isinstance(value, str) and value else "unknown-request-id"


def error_response(request: Request, *, code: str, message: str, status_code: int) -> JSONResponse:
    request_id = _request_id_from_state(request)
    request.state.error_code = code
    body = ErrorResponse(code=code, message=message, request_id=request_id).model_dump()
    return JSONResponse(status_code=status_code, content=body)


def storage_failed_response(request: Request) -> JSONResponse:
    return error_response(
        request,
        code="STORAGE_FAILED",
        message="Storage operation failed.",
        status_code=500,
    )


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError):  # noqa: ARG001
        return error_response(
            request,
            code="UNAUTHORIZED",
            message="Authentication required.",
            status_code=401,
        )

    @app.exception_handler(StorageFailedError)
    async def storage_failed_handler(request: Request, exc: StorageFailedError):  # noqa: ARG001
        return storage_failed_response(request)

    @app.exception_handler(RequestValidationError)
    async def request_validation_failed_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
        return error_response(
            request,
            code="REQUEST_VALIDATION_FAILED",
            message="Request validation failed.",
            status_code=422,
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):  # noqa: ARG001
        return error_response(
            request,
            code="INTERNAL_ERROR",
            message="Internal server error.",
            status_code=500,
        )
