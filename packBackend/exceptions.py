import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Every error body carries a machine-readable "error" reason.
    Unhandled exceptions become a bare 500 with no internal detail.
    """
    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception("unhandled error in %s", type(view).__name__ if view else "view")
        return Response({"error": "internal_error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    codes = exc.get_codes() if hasattr(exc, "get_codes") else None
    reason = codes if isinstance(codes, str) else getattr(exc, "default_code", "error")
    response.data = {"error": reason, "details": response.data}
    return response
