from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from utils.logger import get_logger

logger = get_logger("Global_Exception")

class AppException(HTTPException):
    """Base for every error the API reports as {"message": ...}."""
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(status_code=status_code or self.default_status, detail=detail)

    @property
    def message(self) -> str:
        return self.detail

class BadRequestError(AppException):
    default_status = status.HTTP_400_BAD_REQUEST

class NotFoundError(AppException):
    # read endpoints report a missing deal as 402, mutations as 400
    default_status = status.HTTP_400_BAD_REQUEST

class OwnershipError(AppException):
    default_status = status.HTTP_400_BAD_REQUEST

class InvalidDateRangeError(AppException):
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str = "Deal end date cannot be before the start date", status_code: int | None = None):
        super().__init__(detail, status_code)

class AlreadyExpiredError(AppException):
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str = "Deal is already expired", status_code: int | None = None):
        super().__init__(detail, status_code)

class NoMatchingLocationsError(AppException):
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str = "Error: No matching locations found", status_code: int | None = None):
        super().__init__(detail, status_code)

class UnauthorizedError(AppException):
    default_status = status.HTTP_401_UNAUTHORIZED

class QuotaExceededError(AppException):
    default_status = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, detail: str = "Maximum active deals limit reached", status_code: int | None = None):
        super().__init__(detail, status_code)

class ForbiddenError(AppException):
    default_status = status.HTTP_403_FORBIDDEN

class ConfigurationError(AppException):
    """Raised when code wires a guard with an invalid argument."""
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error(f"Server error on {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"Request to {request.url.path} failed with {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    logger.info("Request validation failed", extra={"path": request.url.path, "errors": len(errors)})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})

async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path}
    )
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error"}
    )

def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
