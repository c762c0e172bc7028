"""
Receptionists and assistants managed by the doctor they work for.

Every operation is scoped to ``caller.doctor_id``; a staff member of
another doctor is reported as not found.
"""
import logging

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from rest_framework.exceptions import ValidationError as DRFValidation

from clinic.exceptions import StaffNotFound, UsernameTaken
from clinic.models import User
from clinic.services.audit import log_action
from clinic.services.identity import Caller

logger = logging.getLogger(__name__)

STATUS_ACTIVE = 'active'
STATUS_SUSPENDED = 'suspended'


def _own_staff(caller: Caller):
    return User.objects.filter(parent_id=caller.doctor_id, role__in=User.STAFF_ROLES)


def _locked_member(caller: Caller, staff_id: int) -> User:
    try:
        return _own_staff(caller).select_for_update().get(id=staff_id)
    except User.DoesNotExist:
        raise StaffNotFound()


def list_staff(caller: Caller):
    return _own_staff(caller).order_by('date_joined', 'id')


def create_staff(caller: Caller, *, full_name, username, password, role) -> User:
    try:
        validate_password(password, user=User(username=username, first_name=full_name))
    except ValidationError as e:
        raise DRFValidation({'password': e.messages})

    with transaction.atomic():
        if User.objects.filter(username__iexact=username).exists():
            raise UsernameTaken()
        member = User.objects.create_user(
            username=username, password=password, first_name=full_name,
            role=role, parent_id=caller.doctor_id,
        )
        log_action(user_id=caller.user_id, action='create_staff', object_type='user',
                   object_id=member.id, detail={'role': role})
    logger.info('Doctor %s added %s %s', caller.doctor_id, role, member.id)
    return member


def set_staff_status(caller: Caller, staff_id: int, status: str) -> User:
    """Suspend or reactivate a staff login; suspended users fail authentication."""
    with transaction.atomic():
        member = _locked_member(caller, staff_id)
        member.is_active = status == STATUS_ACTIVE
        member.save(update_fields=['is_active'])
        log_action(user_id=caller.user_id, action='staff_status', object_type='user',
                   object_id=member.id, detail={'status': status})
    logger.info('Staff %s is now %s', member.id, status)
    return member


def delete_staff(caller: Caller, staff_id: int) -> None:
    with transaction.atomic():
        member = _locked_member(caller, staff_id)
        member.delete()
        log_action(user_id=caller.user_id, action='delete_staff', object_type='user',
                   object_id=staff_id, detail={})
    logger.info('Doctor %s removed staff %s', caller.doctor_id, staff_id)


def staff_status(member: User) -> str:
    return STATUS_ACTIVE if member.is_active else STATUS_SUSPENDED
