# core/api.py

"""
API ERROR NORMALIZATION

Domain errors become 400/404 responses with a {"detail": ...} payload.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response

from core.exceptions import EntityNotFoundError


def error_response(exc: Exception) -> Response:
    http_status = (
        status.HTTP_404_NOT_FOUND
        if isinstance(exc, EntityNotFoundError)
        else status.HTTP_400_BAD_REQUEST
    )
    return Response({"detail": str(exc)}, status=http_status)


def result_payload(result, data) -> dict:
    return {"data": data, "warnings": list(result.warnings)}
