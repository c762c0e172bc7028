import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.exceptions import StaffNotFound, UsernameTaken
from clinic.models import AuditEvent, User
from clinic.services import staff
from clinic.services.identity import caller_for_user

pytestmark = pytest.mark.django_db

NEW_STAFF = {'full_name': 'Rina Akter', 'username': 'rina', 'password': 'Front-desk-77', 'role': 'assistant'}


def as_user(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def test_create_staff_works_for_the_calling_doctor(doctor_caller, doctor):
    member = staff.create_staff(doctor_caller, **NEW_STAFF)
    assert member.parent_id == doctor.id
    assert member.role == User.ROLE_ASSISTANT
    assert member.check_password('Front-desk-77')
    assert caller_for_user(member).doctor_id == doctor.id
    assert AuditEvent.objects.filter(action='create_staff', object_id=member.id).exists()


def test_create_staff_rejects_taken_username(doctor_caller, receptionist):
    with pytest.raises(UsernameTaken):
        staff.create_staff(doctor_caller, **dict(NEW_STAFF, username='DESK'))


def test_list_staff_only_shows_own_team(doctor, other_doctor, receptionist):
    User.objects.create_user(username='elsewhere', password='x', role=User.ROLE_RECEPTIONIST,
                             parent=other_doctor)
    assert list(staff.list_staff(caller_for_user(doctor))) == [receptionist]
    assert [m.username for m in staff.list_staff(caller_for_user(other_doctor))] == ['elsewhere']


def test_other_doctor_cannot_touch_my_staff(other_doctor, receptionist):
    caller = caller_for_user(other_doctor)
    with pytest.raises(StaffNotFound):
        staff.set_staff_status(caller, receptionist.id, staff.STATUS_SUSPENDED)
    with pytest.raises(StaffNotFound):
        staff.delete_staff(caller, receptionist.id)
    assert User.objects.get(id=receptionist.id).is_active


def test_doctor_is_not_a_staff_member(doctor_caller, doctor):
    with pytest.raises(StaffNotFound):
        staff.delete_staff(doctor_caller, doctor.id)


def test_staff_endpoints_round_trip(doctor):
    client = as_user(doctor)
    created = client.post(reverse('staff_collection'), NEW_STAFF, format='json')
    assert created.status_code == 201
    assert created.data['message'] == 'Staff created successfully'
    member_id = created.data['staff']['id']

    listed = client.get(reverse('staff_collection'))
    assert listed.status_code == 200
    assert [(s['id'], s['fullName'], s['role'], s['status']) for s in listed.data] == [
        (member_id, 'Rina Akter', 'assistant', 'active'),
    ]

    suspended = client.put(reverse('staff_status', args=[member_id]), {'status': 'suspended'}, format='json')
    assert suspended.status_code == 200
    assert suspended.data['staff']['status'] == 'suspended'
    assert not User.objects.get(id=member_id).is_active

    removed = client.delete(reverse('remove_staff', args=[member_id]))
    assert removed.status_code == 200
    assert removed.data == {'message': 'Staff removed'}
    assert not User.objects.filter(id=member_id).exists()


def test_create_staff_validation_errors(doctor, receptionist):
    client = as_user(doctor)
    r = client.post(reverse('staff_collection'), dict(NEW_STAFF, role='doctor'), format='json')
    assert r.status_code == 400
    assert r.data['errors']['role'] == ["Invalid role. Use 'receptionist' or 'assistant'."]

    r = client.post(reverse('staff_collection'), {'username': 'x1'}, format='json')
    assert r.status_code == 400
    assert {'full_name', 'password', 'role'} <= set(r.data['errors'])

    r = client.post(reverse('staff_collection'), dict(NEW_STAFF, username='desk'), format='json')
    assert r.status_code == 409
    assert r.data == {'message': 'Username already taken.'}


def test_unknown_staff_id_is_404(doctor):
    r = as_user(doctor).delete(reverse('remove_staff', args=[987654]))
    assert r.status_code == 404
    assert r.data == {'message': 'Staff member not found'}


@pytest.mark.parametrize('who', ['receptionist', 'patient_user'])
def test_only_doctors_manage_staff(request, who):
    client = as_user(request.getfixturevalue(who))
    assert client.get(reverse('staff_collection')).status_code == 403
    assert client.post(reverse('staff_collection'), NEW_STAFF, format='json').status_code == 403


def test_suspended_staff_cannot_log_in_or_use_old_token(doctor, receptionist):
    client = APIClient()
    r = client.post(reverse('login_view'), {'username': 'desk', 'password': 'P@ssw0rd1'}, format='json')
    client.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    assert client.get(reverse('list_appointments')).status_code == 200

    staff.set_staff_status(caller_for_user(doctor), receptionist.id, staff.STATUS_SUSPENDED)
    assert client.get(reverse('list_appointments')).status_code == 401

    again = APIClient().post(reverse('login_view'), {'username': 'desk', 'password': 'P@ssw0rd1'},
                             format='json')
    assert again.status_code == 400

    staff.set_staff_status(caller_for_user(doctor), receptionist.id, staff.STATUS_ACTIVE)
    assert client.get(reverse('list_appointments')).status_code == 200
