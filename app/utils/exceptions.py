# app/utils/exceptions.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class UpstreamError(AppError):
    """A collaborator outside our process failed. Message stays generic."""

    default_message = "An upstream service failed"


class IntegrityError(AppError):
    """A transaction was aborted; nothing it touched was persisted."""

    default_message = "The operation could not be completed"


# ---------------------------
# WORKFLOW SPECIFIC
# ---------------------------
class DuplicateEnrollment(ConflictError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "You are already enrolled in this course"


class InvalidPrice(ValidationError):
    default_message = "Course price is below the minimum payable amount"


class PaymentVerificationFailed(ValidationError):
    default_message = "Payment verification failed."


class PaymentGatewayUnavailable(UpstreamError):
    default_message = "Payment gateway unavailable"


class EnrollmentFailed(IntegrityError):
    default_message = "Enrollment process failed. Please try again."


class CertificateGenerationFailed(UpstreamError):
    default_message = "Certificate generation failed"


# ---------------------------
# SHORTHAND RAISERS
# ---------------------------
def not_found(entity: str = "Resource"):
    raise NotFoundError(f"{entity} not found")


def forbidden(message="Forbidden"):
    raise AuthorizationError(message)


def bad_request(message="Bad request"):
    raise ValidationError(message)


def unauthorized(message="Unauthorized"):
    raise AuthenticationError(message)


# ---------------------------
# HANDLERS
# ---------------------------
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.__cause__ or exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"success": False, "message": "Internal server error"}
    if not settings.is_production:
        content["error"] = type(exc).__name__
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
