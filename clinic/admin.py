"""
Django admin registrations for the clinic models.

Superusers can inspect and correct data through ``/admin/``.  Visits
have no model of their own, so prescription lines are listed with their
batch timestamp to make a visit easy to spot.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import (
    User,
    DoctorProfile,
    Patient,
    Drug,
    DoctorSchedule,
    Appointment,
    PrescriptionLine,
    AuditEvent,
)


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ('username', 'role', 'parent', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_staff')
    search_fields = ('username', 'first_name', 'last_name', 'phone')
    fieldsets = DjangoUserAdmin.fieldsets + (
        ('Clinic', {'fields': ('role', 'parent', 'phone')}),
    )


@admin.register(DoctorProfile)
class DoctorProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'bmdc_reg', 'specialist_title', 'clinic_name')
    search_fields = ('user__username', 'user__first_name', 'bmdc_reg', 'clinic_name')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'age', 'gender', 'mobile', 'created_at')
    search_fields = ('name', 'mobile', 'email')


@admin.register(Drug)
class DrugAdmin(admin.ModelAdmin):
    list_display = ('id', 'generic_name', 'trade_names', 'strength')
    search_fields = ('generic_name', 'trade_names')


@admin.register(DoctorSchedule)
class DoctorScheduleAdmin(admin.ModelAdmin):
    list_display = ('id', 'doctor', 'date', 'session_name', 'start_time', 'end_time', 'max_patients')
    list_filter = ('date',)
    search_fields = ('doctor__username', 'session_name')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'schedule', 'serial_number', 'patient', 'status', 'source', 'visit_date')
    list_filter = ('status', 'source', 'visit_date')
    search_fields = ('patient__name', 'patient__mobile')


@admin.register(PrescriptionLine)
class PrescriptionLineAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'drug', 'created_at', 'public_uid')
    list_filter = ('doctor',)
    search_fields = ('patient__name', 'public_uid')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action',)
    readonly_fields = ('user', 'action', 'object_type', 'object_id', 'detail', 'created_at')
