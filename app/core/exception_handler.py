"""
DRF exception handler for application errors.

Configured as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Anything DRF already
knows how to render (serializer ValidationError, NotAuthenticated, Http404)
is left to the default handler; BaseApplicationError subclasses raised from
views or services are rendered with the same body and status mapping as
failed ServiceResults.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from core.exceptions import BaseApplicationError
from core.responses import status_for_error_code

logger = logging.getLogger(__name__)


def application_exception_handler(exc, context):
    response = drf_exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        logger.warning(
            f"Application error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
            extra={"error_code": exc.error_code},
        )
        return Response(exc.to_dict(), status=status_for_error_code(exc.error_code))

    return None
