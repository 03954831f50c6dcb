# shipments/api/exceptions.py
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


def domain_exception_handler(exc, context):
    """
    Error domain (core.exceptions) → response DRF:
    NotFound / ObjectDoesNotExist → 404, ValidationError → 400.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, ObjectDoesNotExist):
        message = getattr(exc, "message", None) or "Not found."
        return Response(
            {"detail": message, "code": getattr(exc, "code", "not_found")},
            status=status.HTTP_404_NOT_FOUND,
        )

    if isinstance(exc, ValidationError):
        return Response(
            {"detail": " ".join(exc.messages), "code": getattr(exc, "code", None) or "invalid"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return None
