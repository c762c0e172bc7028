from rest_framework import serializers

from clinic.models import User
from clinic.serializers.visits import CleanCharField
from clinic.services.staff import STATUS_ACTIVE, STATUS_SUSPENDED, staff_status


class StaffCreateSerializer(serializers.Serializer):
    full_name = CleanCharField(max_length=150, required=True, allow_blank=False)
    username = serializers.RegexField(r'^[\w.@+-]{3,150}$', max_length=150)
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    role = serializers.ChoiceField(choices=list(User.STAFF_ROLES), error_messages={
        'invalid_choice': "Invalid role. Use 'receptionist' or 'assistant'.",
    })

    def to_internal_value(self, data):
        if hasattr(data, 'dict'):
            data = data.dict()
        if isinstance(data, dict) and 'full_name' not in data and 'fullName' in data:
            data = dict(data, full_name=data['fullName'])
        return super().to_internal_value(data)


class StaffStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[STATUS_ACTIVE, STATUS_SUSPENDED])


def staff_payload(member) -> dict:
    return {
        'id': member.id,
        'fullName': member.first_name,
        'username': member.username,
        'role': member.role,
        'status': staff_status(member),
        'createdAt': member.date_joined.isoformat(),
    }
