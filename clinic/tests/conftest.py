from datetime import time, timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from clinic.models import DoctorProfile, DoctorSchedule, Drug, Patient, User
from clinic.services.identity import caller_for_user

PASSWORD = 'P@ssw0rd1'


@pytest.fixture(autouse=True)
def _clear_cache():
    # Throttle counters and the public doctor list live in the cache.
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def doctor(db):
    u = User.objects.create_user(username='doc', password=PASSWORD, role=User.ROLE_DOCTOR,
                                 first_name='Anisur', last_name='Rahman')
    DoctorProfile.objects.create(user=u, clinic_name='Care Centre', degree='MBBS')
    return u


@pytest.fixture
def other_doctor(db):
    return User.objects.create_user(username='doc2', password=PASSWORD, role=User.ROLE_DOCTOR)


@pytest.fixture
def receptionist(db, doctor):
    return User.objects.create_user(username='desk', password=PASSWORD, role=User.ROLE_RECEPTIONIST,
                                    parent=doctor)


@pytest.fixture
def patient_user(db):
    u = User.objects.create_user(username='01711111111', password=PASSWORD, role=User.ROLE_PATIENT)
    Patient.objects.create(user=u, name='Karim Uddin', mobile='01711111111', age=40, gender='Male')
    return u


@pytest.fixture
def patients(db):
    return [Patient.objects.create(name=f'Patient {i}', mobile=f'0170000000{i}') for i in range(1, 6)]


@pytest.fixture
def drugs(db):
    return [
        Drug.objects.create(generic_name='Paracetamol', trade_names='Napa', strength='500 mg'),
        Drug.objects.create(generic_name='Omeprazole', trade_names='Seclo', strength='20 mg'),
        Drug.objects.create(generic_name='Cetirizine', trade_names='Alatrol', strength='10 mg'),
    ]


@pytest.fixture
def make_schedule(doctor):
    def _make(max_patients=20, days=1, owner=None, start=time(17, 0), end=time(21, 0)):
        return DoctorSchedule.objects.create(
            doctor=owner or doctor,
            date=timezone.localdate() + timedelta(days=days),
            session_name='Evening',
            start_time=start,
            end_time=end,
            max_patients=max_patients,
        )
    return _make


@pytest.fixture
def doctor_caller(doctor):
    return caller_for_user(doctor)


@pytest.fixture
def desk_caller(receptionist):
    return caller_for_user(receptionist)


@pytest.fixture
def api_client():
    return APIClient()
