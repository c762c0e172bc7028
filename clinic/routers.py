"""
URL mappings for the clinic API.

Trailing slashes are deliberately omitted; clients call the paths
exactly as listed here.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view, jwt_logout_view
from .views import appointments, health, patients, portal, prescriptions, public, schedules, staff

urlpatterns = [
    path('healthz', health.healthz, name='healthz'),
    path('', include('django_prometheus.urls')),

    # Auth
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout'),

    # Schedules & booking
    path('api/schedules/book-serial', schedules.book_serial, name='book_serial'),
    path('api/schedules/my-sessions', schedules.my_sessions, name='my_sessions'),
    path('api/schedules/create', schedules.create_session, name='create_session'),
    path('api/schedules/available', schedules.available_sessions, name='available_sessions'),
    path('api/schedules/<int:schedule_id>', schedules.delete_session, name='delete_session'),

    # Appointments
    path('api/appointments', appointments.list_appointments, name='list_appointments'),
    path('api/appointments/<int:appointment_id>/status', appointments.update_status, name='appointment_status'),

    # Prescriptions
    path('api/prescriptions', prescriptions.create_prescription, name='create_prescription'),
    path('api/prescriptions/replace', prescriptions.replace_prescription, name='replace_prescription'),
    path('api/prescriptions/reprint/<int:patient_id>', prescriptions.reprint_prescription,
         name='reprint_prescription'),
    path('api/prescriptions/recent', prescriptions.recent_prescriptions, name='recent_prescriptions'),
    path('api/patients/<int:patient_id>/history', patients.patient_history, name='patient_history'),

    # Staff
    path('api/staff', staff.staff_collection, name='staff_collection'),
    path('api/staff/<int:staff_id>', staff.remove_staff, name='remove_staff'),
    path('api/staff/<int:staff_id>/status', staff.staff_status, name='staff_status'),

    # Patient portal
    path('api/portal/register', portal.register, name='portal_register'),
    path('api/portal/my-history', portal.my_history, name='portal_my_history'),
    path('api/portal/my-appointments', portal.my_appointments, name='portal_my_appointments'),

    # Public
    path('api/public/doctors', public.doctors, name='public_doctors'),
    path('api/public/doctors/<int:doctor_id>/schedules', public.doctor_schedules, name='public_doctor_schedules'),
    path('api/public/prescription/<uuid:uid>', public.prescription_by_uid, name='public_prescription'),
]
