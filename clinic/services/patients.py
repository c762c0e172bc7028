import logging

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from rest_framework.exceptions import ValidationError as DRFValidation

from clinic.models import Patient, User
from clinic.services.audit import log_action

logger = logging.getLogger(__name__)


def register_patient_account(*, name, mobile, password, age=None, gender='', email='', address='',
                             dob=None):
    """Create a portal login (username = mobile) together with its patient record."""
    try:
        validate_password(password)
    except ValidationError as e:
        raise DRFValidation({'password': e.messages})

    with transaction.atomic():
        user = User.objects.create_user(
            username=mobile, password=password, first_name=name, email=email or '',
            role=User.ROLE_PATIENT, phone=mobile,
        )
        patient = Patient.objects.create(
            user=user, name=name, mobile=mobile, age=age, gender=gender or '',
            email=email or '', address=address or '', dob=dob,
        )
        log_action(user_id=user.id, action='portal_register', object_type='patient',
                   object_id=patient.id, detail={})
    logger.info('Portal account %s registered for patient %s', user.id, patient.id)
    return user, patient


def patient_summary(patient: Patient) -> dict:
    return {
        'id': patient.id,
        'name': patient.name,
        'age': patient.age,
        'gender': patient.gender,
        'mobile': patient.mobile,
        'email': patient.email,
        'address': patient.address,
        'dob': patient.dob.isoformat() if patient.dob else None,
        'referredBy': patient.referred_by,
    }
