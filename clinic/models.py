"""
Database models for the MedLipi clinic backend.

These models capture the core concepts of a practice: doctors and the
staff working on their behalf, patients, the drug inventory, bookable
schedule sessions with their serial bookings, and prescription lines.
A prescription "visit" has no table of its own: it is the set of lines
sharing one patient, one doctor and one ``created_at`` timestamp.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom user model with a role and an optional parent doctor.

    Receptionists and assistants act on behalf of exactly one doctor,
    their ``parent``.  That doctor is the *operating doctor* for every
    schedule and appointment operation the staff member performs.
    """
    ROLE_DOCTOR = 'doctor'
    ROLE_RECEPTIONIST = 'receptionist'
    ROLE_ASSISTANT = 'assistant'
    ROLE_PATIENT = 'patient'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_RECEPTIONIST, 'Receptionist'),
        (ROLE_ASSISTANT, 'Assistant'),
        (ROLE_PATIENT, 'Patient'),
        (ROLE_ADMIN, 'Administrator'),
    ]
    STAFF_ROLES = (ROLE_RECEPTIONIST, ROLE_ASSISTANT)

    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)
    parent = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='staff_members',
        help_text="Doctor this receptionist/assistant works for",
    )
    phone = models.CharField(max_length=20, blank=True)

    @property
    def operating_doctor_id(self) -> int | None:
        if self.role == self.ROLE_DOCTOR:
            return self.id
        if self.role in self.STAFF_ROLES:
            return self.parent_id
        return None

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class DoctorProfile(models.Model):
    """Public and letterhead details of a doctor."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    bmdc_reg = models.CharField(max_length=32, blank=True)
    degree = models.CharField(max_length=255, blank=True)
    specialist_title = models.CharField(max_length=255, blank=True)
    clinic_name = models.CharField(max_length=255, blank=True)
    chamber_address = models.TextField(blank=True)
    phone_number = models.CharField(max_length=20, blank=True)

    def __str__(self) -> str:
        return f"Dr. {self.user.get_full_name() or self.user.username}"


class Patient(models.Model):
    """A patient record.

    Records are created by doctors while writing a prescription, by staff
    at the front desk, or by the patient through the portal; in the last
    case ``user`` links the record to the portal account.
    """
    name = models.CharField(max_length=255)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=16, blank=True)
    dob = models.DateField(null=True, blank=True)
    mobile = models.CharField(max_length=20, blank=True, db_index=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    referred_by = models.CharField(max_length=255, blank=True)
    user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patient_record'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})"


class Drug(models.Model):
    """A row of the drug inventory referenced by prescription lines."""
    generic_name = models.CharField(max_length=255)
    trade_names = models.CharField(max_length=255, blank=True)
    strength = models.CharField(max_length=64, blank=True)
    counseling_points = models.TextField(blank=True)

    def __str__(self) -> str:
        return f"{self.trade_names or self.generic_name} {self.strength}".strip()


class DoctorSchedule(models.Model):
    """A bookable session of a doctor.

    ``max_patients`` caps the number of non-cancelled bookings.  The row
    is locked with ``SELECT ... FOR UPDATE`` while a serial is assigned.
    """
    doctor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='schedules')
    date = models.DateField(db_index=True)
    session_name = models.CharField(max_length=64, blank=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    max_patients = models.PositiveIntegerField(default=20)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'date'], name='clinic_sched_doctor_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.session_name or 'Session'} {self.date:%Y-%m-%d} {self.start_time:%H:%M}"


class Appointment(models.Model):
    """One patient's claim on a schedule session.

    Appointments are never deleted; cancellation is a status.  Serial
    numbers are unique per session, cancelled ones included, so a
    cancelled serial is never handed out again.
    """
    STATUS_CONFIRMED = 'Confirmed'
    STATUS_COMPLETED = 'Completed'
    STATUS_CANCELLED = 'Cancelled'
    STATUS_CHOICES = [
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    SOURCE_ONLINE = 'Online'
    SOURCE_RECEPTION = 'Reception'
    SOURCE_CHOICES = [
        (SOURCE_ONLINE, 'Online'),
        (SOURCE_RECEPTION, 'Reception'),
    ]

    doctor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='doctor_appointments')
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='appointments')
    # Cleared when an emptied session is deleted so cancelled history survives.
    schedule = models.ForeignKey(
        DoctorSchedule, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments'
    )
    visit_date = models.DateField(db_index=True)
    visit_time = models.TimeField(null=True, blank=True)
    serial_number = models.PositiveIntegerField(null=True, blank=True)
    source = models.CharField(max_length=16, choices=SOURCE_CHOICES, default=SOURCE_RECEPTION)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CONFIRMED, db_index=True)
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['schedule', 'serial_number'], name='unique_serial_per_schedule'),
        ]
        indexes = [
            models.Index(fields=['schedule', 'status'], name='clinic_appt_sched_status_idx'),
            models.Index(fields=['doctor', 'visit_date'], name='clinic_appt_doctor_date_idx'),
        ]

    def __str__(self) -> str:
        return f"Serial {self.serial_number} for {self.patient_id} on {self.visit_date}"


class PrescriptionLine(models.Model):
    """One drug of a prescription visit.

    The clinical fields are batch-level: every line of a visit carries
    identical copies, and ``created_at`` is the visit's key.  It is set
    explicitly by the batch writer, never by ``auto_now_add``.
    """
    doctor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='prescription_lines')
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='prescription_lines')
    drug = models.ForeignKey(Drug, on_delete=models.PROTECT, related_name='prescription_lines')
    quantity = models.CharField(max_length=64, blank=True)
    sig_instruction = models.CharField(max_length=255, blank=True)
    duration = models.CharField(max_length=64, blank=True)

    diagnosis_text = models.TextField(blank=True)
    general_advice = models.TextField(blank=True)
    chief_complaint = models.TextField(blank=True)
    medical_history = models.TextField(blank=True)
    examination_findings = models.JSONField(default=dict, blank=True)
    investigations = models.TextField(blank=True)
    follow_up_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(db_index=True)
    public_uid = models.UUIDField(default=uuid.uuid4, db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'doctor', 'created_at'], name='clinic_rx_visit_key_idx'),
        ]

    def __str__(self) -> str:
        return f"Rx line {self.id} ({self.patient_id} @ {self.created_at:%F %T})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='clinic_audit_action_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='clinic_audit_object_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
