"""
Explicit caller identity.

Views turn the authenticated request user into a :class:`Caller` and
hand it to the services, which never look at the request themselves.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from clinic.models import Patient, User


@dataclass(frozen=True)
class Caller:
    user_id: Optional[int]
    role: Optional[str]
    doctor_id: Optional[int] = None
    patient_id: Optional[int] = None

    @property
    def is_patient(self) -> bool:
        return self.role == User.ROLE_PATIENT


def caller_for_user(user) -> Caller:
    if user is None or not getattr(user, 'is_authenticated', False):
        return Caller(user_id=None, role=None)
    patient_id = None
    if user.role == User.ROLE_PATIENT:
        patient_id = Patient.objects.filter(user_id=user.id).values_list('id', flat=True).first()
    return Caller(
        user_id=user.id,
        role=user.role,
        doctor_id=user.operating_doctor_id,
        patient_id=patient_id,
    )


def caller_from_request(request) -> Caller:
    return caller_for_user(getattr(request, 'user', None))
