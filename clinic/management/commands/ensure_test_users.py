from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand

from clinic.models import DoctorProfile, Patient, User

TEST_PASSWORD = "medlipi123"

# (username, role, parent username)
TEST_SET = [
    ("doctor1", User.ROLE_DOCTOR, None),
    ("reception1", User.ROLE_RECEPTIONIST, "doctor1"),
    ("assistant1", User.ROLE_ASSISTANT, "doctor1"),
    ("patient1", User.ROLE_PATIENT, None),
]


class Command(BaseCommand):
    help = f"Ensure demo users exist with password={TEST_PASSWORD} (idempotent)."

    def handle(self, *args, **opts):
        users: dict[str, User] = {}
        for username, role, parent in TEST_SET:
            u, created = User.objects.get_or_create(
                username=username,
                defaults={"role": role, "password": make_password(TEST_PASSWORD), "is_active": True},
            )
            if not created:
                # Reset password, role and active flag on every run.
                u.password = make_password(TEST_PASSWORD)
                u.role = role
                u.is_active = True
            u.parent = users.get(parent) if parent else None
            u.save()
            users[username] = u

            if role == User.ROLE_DOCTOR:
                DoctorProfile.objects.get_or_create(user=u, defaults={"clinic_name": "MedLipi Demo Clinic"})
            elif role == User.ROLE_PATIENT:
                Patient.objects.get_or_create(user=u, defaults={"name": username.capitalize()})
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All test users ensured."))
