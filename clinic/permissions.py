"""
Role based permission classes.
"""
from rest_framework.permissions import BasePermission

from .models import User

CLINIC_STAFF_ROLES = {User.ROLE_DOCTOR, User.ROLE_RECEPTIONIST, User.ROLE_ASSISTANT}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsClinicStaff(BasePermission):
    """Doctors and the receptionists/assistants working for one.

    Staff without a parent doctor have nobody to act for and are refused.
    """
    message = "Only clinic staff can perform this action."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if _role(request) not in CLINIC_STAFF_ROLES:
            return False
        return request.user.operating_doctor_id is not None


class IsDoctorRole(BasePermission):
    """Allow access only to users with the doctor role."""
    message = "Only doctors can perform this action."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == User.ROLE_DOCTOR


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    message = "Only patients can perform this action."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == User.ROLE_PATIENT


class IsPatientOrClinicStaff(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if _role(request) == User.ROLE_PATIENT:
            return True
        return IsClinicStaff().has_permission(request, view)
