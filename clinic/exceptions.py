"""
Typed clinic errors and the project-wide DRF exception handler.

Services raise subclasses of :class:`ClinicError` inside their
transactions; ``transaction.atomic`` rolls back and the handler below
renders the error as ``{"message": ...}`` with the error's status code.
Everything else is logged with its traceback and reported as an opaque
server error.
"""
from __future__ import annotations

import logging

from django.db import IntegrityError
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

logger = logging.getLogger(__name__)

DUPLICATE_ENTRY_MESSAGE = 'A record with these details already exists.'
REFERENCED_ROW_MESSAGE = 'This record is referenced by other records and cannot be removed.'
SERVER_ERROR_MESSAGE = 'Server error'

# MySQL error numbers that may be shown to the client in translated form.
MYSQL_DUPLICATE_ENTRY = 1062
MYSQL_ROW_IS_REFERENCED = 1451


class ClinicError(Exception):
    """Base class for rule violations reported to the client."""
    status_code = 400
    default_message = 'Request could not be completed.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SessionNotFound(ClinicError):
    default_message = 'Schedule not found'


class DuplicateBooking(ClinicError):
    default_message = 'You have already booked a serial for this session.'


class SessionFull(ClinicError):
    default_message = 'Sorry, this session is full.'


class SessionInUse(ClinicError):
    default_message = 'This session has active appointments. Cancel them first via the Schedule page.'


class PatientRequired(ClinicError):
    default_message = 'Patient ID missing.'


class PatientNotFound(ClinicError):
    status_code = 404
    default_message = 'Patient not found'


class VisitNotFound(ClinicError):
    status_code = 404
    default_message = 'Prescription not found'


class InvalidTransition(ClinicError):
    default_message = 'This status change is not allowed.'


class AppointmentNotFound(ClinicError):
    status_code = 404
    default_message = 'Appointment not found'


class StaffNotFound(ClinicError):
    status_code = 404
    default_message = 'Staff member not found'


class UsernameTaken(ClinicError):
    status_code = 409
    default_message = 'Username already taken.'


def _mysql_errno(exc: Exception) -> int | None:
    args = getattr(exc, 'args', ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def _translate_db_error(exc: Exception) -> str | None:
    """Map allow-listed database errors to a client-safe message."""
    if isinstance(exc, ProtectedError):
        return REFERENCED_ROW_MESSAGE
    if isinstance(exc, IntegrityError):
        errno = _mysql_errno(exc)
        if errno == MYSQL_ROW_IS_REFERENCED:
            return REFERENCED_ROW_MESSAGE
        if errno == MYSQL_DUPLICATE_ENTRY:
            return DUPLICATE_ENTRY_MESSAGE
        text = str(exc).lower()
        if 'unique' in text or 'duplicate' in text:
            return DUPLICATE_ENTRY_MESSAGE
        if 'foreign key' in text:
            return REFERENCED_ROW_MESSAGE
    return None


def _message_from(data) -> str:
    if isinstance(data, dict):
        detail = data.get('detail')
        if detail is not None:
            return str(detail)
        return 'Invalid request.'
    if isinstance(data, list) and data:
        return str(data[0])
    return str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, ClinicError):
        set_rollback()
        logger.info('Rejected %s: %s', type(exc).__name__, exc.message)
        return Response({'message': exc.message}, status=exc.status_code)

    translated = _translate_db_error(exc)
    if translated is not None:
        set_rollback()
        logger.warning('Database constraint rejected request: %s', exc)
        return Response({'message': translated}, status=400)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.error('Unhandled error in %s', getattr(view, '__name__', view), exc_info=exc)
        set_rollback()
        return Response({'message': SERVER_ERROR_MESSAGE}, status=500)

    body = {'message': _message_from(resp.data)}
    if isinstance(exc, drf_exceptions.ValidationError):
        body['message'] = 'Invalid request.'
        body['errors'] = resp.data
    elif isinstance(exc, Http404):
        body['message'] = 'Not found.'
    headers = {name: resp[name] for name in ('WWW-Authenticate', 'Retry-After') if resp.has_header(name)}
    return Response(body, status=resp.status_code, headers=headers)
