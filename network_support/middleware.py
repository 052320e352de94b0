"""Request tracing middleware for the network-support API"""

import uuid
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add a unique request ID to every request and response.

    The request ID is useful for tracing requests through logs and correlating
    errors with specific API calls.
    """

    async def dispatch(self, request: Request, call_next):
        """Add request ID to request state and response headers"""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            # Even on error, include request_id
            logger.exception(f"Request {request_id} failed with exception: {e}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "type": "error",
                    "status": status.HTTP_500_INTERNAL_SERVER_ERROR,
                    "error": "INTERNAL_ERROR",
                    "message": "An internal server error occurred",
                    "request_id": request_id
                },
                headers={"X-Request-ID": request_id}
            )


def get_request_id(request: Request) -> str:
    """
    Get the request ID from the request state.

    If missing (e.g. a handler running outside the middleware), generates
    a new UUID and attaches it.

    Args:
        request: FastAPI request object

    Returns:
        Request ID string
    """
    request_id = getattr(request.state, 'request_id', None)
    if not request_id:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        logger.debug(f"Request ID missing, generated {request_id}")
    return request_id
