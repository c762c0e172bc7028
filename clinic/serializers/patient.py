from rest_framework import serializers

from clinic.serializers.visits import CleanCharField


class PortalRegisterSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255, required=True, allow_blank=False)
    mobile = serializers.RegexField(r'^\+?\d{6,20}$', max_length=20)
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    age = serializers.IntegerField(min_value=0, max_value=150, required=False, allow_null=True)
    gender = CleanCharField(max_length=16)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = CleanCharField()
    dob = serializers.DateField(required=False, allow_null=True)

    def validate_name(self, v):
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters.')
        return v
