from rest_framework import serializers

from clinic.models import Appointment


class BookSerialSerializer(serializers.Serializer):
    schedule_id = serializers.IntegerField(min_value=1)
    patient_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def to_internal_value(self, data):
        # Accept the camelCase names some clients send.
        if hasattr(data, 'dict'):
            data = data.dict()
        if not isinstance(data, dict):
            return super().to_internal_value(data)
        data = dict(data)
        for camel, snake in (('scheduleId', 'schedule_id'), ('patientId', 'patient_id')):
            if snake not in data and camel in data:
                data[snake] = data[camel]
        return super().to_internal_value(data)


class ScheduleCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    session_name = serializers.CharField(max_length=64, required=False, allow_blank=True)
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    max_patients = serializers.IntegerField(min_value=1, max_value=500, required=False)

    def validate(self, attrs):
        if attrs['end_time'] <= attrs['start_time']:
            raise serializers.ValidationError({'end_time': 'End time must be after start time.'})
        return attrs


class SessionListQuerySerializer(serializers.Serializer):
    view = serializers.ChoiceField(choices=['current', 'history'], required=False, default='current')
    limit = serializers.IntegerField(min_value=1, max_value=500, required=False)


class AppointmentListQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    type = serializers.ChoiceField(choices=['today', 'upcoming'], required=False)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES])


def session_payload(schedule) -> dict:
    booked = getattr(schedule, 'booked_count', 0)
    return {
        'id': schedule.id,
        'doctorId': schedule.doctor_id,
        'date': schedule.date.isoformat(),
        'sessionName': schedule.session_name,
        'startTime': schedule.start_time.strftime('%H:%M'),
        'endTime': schedule.end_time.strftime('%H:%M'),
        'maxPatients': schedule.max_patients,
        'bookedCount': booked,
        'isFull': booked >= schedule.max_patients,
    }


def appointment_payload(appt, *, with_patient: bool = False) -> dict:
    data = {
        'id': appt.id,
        'scheduleId': appt.schedule_id,
        'doctorId': appt.doctor_id,
        'patientId': appt.patient_id,
        'visitDate': appt.visit_date.isoformat(),
        'visitTime': appt.visit_time.strftime('%H:%M') if appt.visit_time else None,
        'serial': appt.serial_number,
        'source': appt.source,
        'status': appt.status,
        'reason': appt.reason,
    }
    if with_patient:
        data['patientName'] = appt.patient.name
        data['mobile'] = appt.patient.mobile
    return data
