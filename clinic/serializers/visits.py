import html
import json

import bleach
from rest_framework import serializers


def clean_text(v):
    """Drop every tag and keep the text as typed (no HTML entities)."""
    return html.unescape(bleach.clean((v or '').strip(), tags=set(), strip=True))


def clean_findings(findings: dict) -> dict:
    return {
        key: clean_text(value) if isinstance(value, str) else value
        for key, value in findings.items()
    }


class CleanCharField(serializers.CharField):
    """CharField that strips markup from free text."""

    def __init__(self, **kwargs):
        kwargs.setdefault('required', False)
        kwargs.setdefault('allow_blank', True)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))


class FindingsField(serializers.JSONField):
    """Examination findings as a JSON object.

    A string is parsed as JSON; text that is not a JSON object is kept
    under the ``other`` key.
    """

    def to_internal_value(self, data):
        data = super().to_internal_value(data)
        if data in (None, ''):
            return {}
        if isinstance(data, str):
            try:
                parsed = json.loads(data)
            except json.JSONDecodeError:
                return {'other': clean_text(data)}
            if isinstance(parsed, dict):
                return clean_findings(parsed)
            return {'other': clean_text(data)}
        if isinstance(data, dict):
            return clean_findings(data)
        raise serializers.ValidationError('Examination findings must be an object.')


def _alias(data, pairs):
    if hasattr(data, 'dict'):
        data = data.dict()
    if not isinstance(data, dict):
        return data
    data = dict(data)
    for alias, name in pairs:
        if name not in data and alias in data:
            data[name] = data[alias]
    return data


class PatientPayloadSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    name = CleanCharField(max_length=255)
    age = serializers.IntegerField(min_value=0, max_value=150, required=False, allow_null=True)
    gender = CleanCharField(max_length=16)
    dob = serializers.DateField(required=False, allow_null=True)
    mobile = CleanCharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True)
    address = CleanCharField()
    referred_by = CleanCharField(max_length=255)

    def to_internal_value(self, data):
        return super().to_internal_value(_alias(data, [('referredBy', 'referred_by'), ('patientId', 'id')]))

    def validate(self, attrs):
        if not attrs.get('id') and not attrs.get('name'):
            raise serializers.ValidationError({'name': 'Patient name is required for a new patient.'})
        return attrs


class LineSerializer(serializers.Serializer):
    drug_id = serializers.IntegerField(required=False, allow_null=True)
    quantity = CleanCharField(max_length=64)
    sig_instruction = CleanCharField(max_length=255)
    duration = CleanCharField(max_length=64)

    def to_internal_value(self, data):
        return super().to_internal_value(_alias(data, [('drugId', 'drug_id'), ('sig', 'sig_instruction')]))


class ClinicalFieldsSerializer(serializers.Serializer):
    diagnosis_text = CleanCharField()
    general_advice = CleanCharField()
    chief_complaint = CleanCharField()
    medical_history = CleanCharField()
    examination_findings = FindingsField(required=False, allow_null=True)
    investigations = CleanCharField()
    follow_up_date = serializers.DateField(required=False, allow_null=True)

    CLINICAL_KEYS = (
        'diagnosis_text', 'general_advice', 'chief_complaint', 'medical_history',
        'examination_findings', 'investigations', 'follow_up_date',
    )

    def to_internal_value(self, data):
        return super().to_internal_value(_alias(data, [
            ('diagnosis', 'diagnosis_text'), ('advice', 'general_advice'),
            ('chiefComplaint', 'chief_complaint'), ('medicalHistory', 'medical_history'),
            ('examinationFindings', 'examination_findings'), ('followUpDate', 'follow_up_date'),
        ]))

    def clinical(self) -> dict:
        return {k: self.validated_data.get(k) for k in self.CLINICAL_KEYS}


class VisitCreateSerializer(ClinicalFieldsSerializer):
    patient = PatientPayloadSerializer()
    lines = LineSerializer(many=True)

    def to_internal_value(self, data):
        return super().to_internal_value(_alias(data, [('medicines', 'lines')]))


class VisitReplaceSerializer(ClinicalFieldsSerializer):
    patient_id = serializers.IntegerField(min_value=1)
    timestamp = serializers.DateTimeField()
    lines = LineSerializer(many=True)

    def to_internal_value(self, data):
        return super().to_internal_value(_alias(data, [
            ('patientId', 'patient_id'), ('originalTimestamp', 'timestamp'), ('medicines', 'lines'),
        ]))


class ReprintQuerySerializer(serializers.Serializer):
    timestamp = serializers.DateTimeField()


class RecentQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)


def visit_result_payload(result, message: str) -> dict:
    return {
        'message': message,
        'timestamp': result.timestamp.isoformat(),
        'patientId': result.patient_id,
        'publicUid': str(result.public_uid),
        'lineCount': result.line_count,
    }


def visit_summary_payload(visit) -> dict:
    head = visit.head
    return {
        'timestamp': visit.created_at.isoformat(),
        'publicUid': str(visit.public_uid),
        'diagnosis': head.diagnosis_text,
        'chiefComplaint': head.chief_complaint,
        'followUpDate': head.follow_up_date.isoformat() if head.follow_up_date else None,
        'items': [{
            'drugId': line.drug_id,
            'drug': str(line.drug),
            'quantity': line.quantity,
            'sig': line.sig_instruction,
            'duration': line.duration,
        } for line in visit.lines],
    }
