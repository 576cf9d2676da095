import logging
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .exceptions import (TeamboardError, UnauthorizedError, ForbiddenError,
                         NotFoundError, UserNotFoundError, InvalidDataError,
                         ConflictError)

logger = logging.getLogger(__name__)

STATUS_CODES = [
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UserNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidDataError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
]


def status_for(exc):
    for exc_class, code in STATUS_CODES:
        if isinstance(exc, exc_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER turning teamboard errors into responses.

    Anything else goes to the rest_framework default handler.
    """
    if not isinstance(exc, TeamboardError):
        return drf_exception_handler(exc, context)

    code = status_for(exc)
    if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.exception('Unmapped teamboard error: %s', exc)

    payload = {'code': exc.code, 'message': exc.message}
    if isinstance(exc, InvalidDataError) and exc.errors:
        payload['errors'] = exc.errors
    headers = {}
    if code == status.HTTP_401_UNAUTHORIZED:
        headers['WWW-Authenticate'] = 'Token'
    return Response(payload, status=code, headers=headers)
