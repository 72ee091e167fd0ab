import sys
import traceback

from fastapi import HTTPException
from fastapi.responses import ORJSONResponse

from .settings.globals import ENV


class RecordNotFoundError(Exception):
    pass


class RecordAlreadyExistsError(Exception):
    pass


class BadRequestError(Exception):
    pass


class UnauthorizedError(Exception):
    pass


class InternalError(Exception):
    pass


class GeometryError(Exception):
    pass


class JobFailureError(Exception):
    """Terminal failure of a clipping job.

    The submission itself succeeded, so the status code and message are
    reported through the job record rather than the HTTP response.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def http_error_handler(exc: HTTPException) -> ORJSONResponse:

    message = exc.detail
    if exc.status_code < 500:
        status = "failed"
    else:
        status = "error"
        # In dev and test print full traceback of internal server errors
        if ENV == "test" or ENV == "dev":
            exc_type, exc_value, exc_traceback = sys.exc_info()
            if exc_type is not None:
                message = traceback.format_exception(
                    exc_type, exc_value, exc_traceback
                )
    return ORJSONResponse(
        status_code=exc.status_code, content={"status": status, "message": message}
    )


def to_http_exception(exc: Exception) -> HTTPException:
    """Map domain errors to the HTTP status the API reports for them."""
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, BadRequestError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, UnauthorizedError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, JobFailureError):
        return HTTPException(status_code=exc.status_code, detail=exc.message)
    return HTTPException(status_code=500, detail=str(exc))
