"""
Prescription batch writer.

A visit is the set of ``PrescriptionLine`` rows sharing one patient, one
doctor and one ``created_at`` timestamp.  Visits are written wholesale in
one transaction and replaced wholesale on edit; a single line is never
updated on its own.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from itertools import groupby
from typing import Any, Iterable

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from clinic.exceptions import PatientNotFound, VisitNotFound
from clinic.models import Drug, Patient, PrescriptionLine
from clinic.services.audit import log_action
from clinic.services.identity import Caller

logger = logging.getLogger(__name__)

CLINICAL_FIELDS = (
    'diagnosis_text', 'general_advice', 'chief_complaint', 'medical_history',
    'examination_findings', 'investigations', 'follow_up_date',
)
PATIENT_MUTABLE_FIELDS = ('dob', 'mobile', 'email', 'address', 'referred_by')
PATIENT_CREATE_FIELDS = ('name', 'age', 'gender') + PATIENT_MUTABLE_FIELDS


@dataclass
class VisitResult:
    timestamp: datetime
    patient_id: int
    public_uid: uuid.UUID
    line_count: int


@dataclass
class Visit:
    patient: Patient
    doctor: Any
    created_at: datetime
    public_uid: uuid.UUID
    lines: list = field(default_factory=list)

    @classmethod
    def from_lines(cls, lines: list) -> "Visit":
        first = lines[0]
        return cls(patient=first.patient, doctor=first.doctor, created_at=first.created_at,
                   public_uid=first.public_uid, lines=lines)

    @property
    def head(self) -> PrescriptionLine:
        return self.lines[0]


def _tolerance() -> timedelta:
    return timedelta(seconds=settings.VISIT_LOOKUP_TOLERANCE_SECONDS)


def _aware(ts: datetime) -> datetime:
    if timezone.is_naive(ts):
        return timezone.make_aware(ts)
    return ts


def _upsert_patient(payload: dict) -> Patient:
    patient_id = payload.get('id')
    if not patient_id:
        return Patient.objects.create(**{
            name: payload[name] for name in PATIENT_CREATE_FIELDS if payload.get(name) is not None
        })
    patient = Patient.objects.filter(id=patient_id).first()
    if patient is None:
        raise PatientNotFound()
    changed = [name for name in PATIENT_MUTABLE_FIELDS if name in payload]
    for name in changed:
        value = payload[name]
        setattr(patient, name, '' if value is None and name != 'dob' else value)
    if changed:
        patient.save(update_fields=changed)
    return patient


def _insert_lines(*, doctor_id: int, patient_id: int, timestamp: datetime, public_uid: uuid.UUID,
                  lines: Iterable[dict], clinical: dict) -> int:
    """Insert one row per line with a resolvable drug; the rest are skipped."""
    lines = list(lines)
    wanted = {line.get('drug_id') for line in lines if line.get('drug_id')}
    known = set(Drug.objects.filter(id__in=wanted).values_list('id', flat=True))
    shared = {name: clinical.get(name) for name in CLINICAL_FIELDS}
    shared['examination_findings'] = shared['examination_findings'] or {}
    for name in CLINICAL_FIELDS:
        if shared[name] is None and name != 'follow_up_date':
            shared[name] = ''
    rows = [
        PrescriptionLine(
            doctor_id=doctor_id,
            patient_id=patient_id,
            drug_id=line['drug_id'],
            quantity=line.get('quantity') or '',
            sig_instruction=line.get('sig_instruction') or '',
            duration=line.get('duration') or '',
            created_at=timestamp,
            public_uid=public_uid,
            **shared,
        )
        for line in lines
        if line.get('drug_id') in known
    ]
    PrescriptionLine.objects.bulk_create(rows)
    if len(rows) < len(lines):
        logger.debug('Skipped %s line(s) without a known drug', len(lines) - len(rows))
    return len(rows)


# ---------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------
@transaction.atomic
def create_visit(caller: Caller, patient_payload: dict, lines: list, clinical: dict) -> VisitResult:
    patient = _upsert_patient(patient_payload)
    timestamp = timezone.now()
    public_uid = uuid.uuid4()
    count = _insert_lines(doctor_id=caller.doctor_id, patient_id=patient.id, timestamp=timestamp,
                          public_uid=public_uid, lines=lines, clinical=clinical)
    if not count:
        logger.warning('Visit for patient %s saved with no drug lines', patient.id)
    log_action(user_id=caller.user_id, action='visit_create', object_type='patient',
               object_id=patient.id, detail={'timestamp': timestamp.isoformat(), 'lines': count})
    logger.info('Doctor %s wrote %s line(s) for patient %s', caller.doctor_id, count, patient.id)
    return VisitResult(timestamp=timestamp, patient_id=patient.id, public_uid=public_uid, line_count=count)


@transaction.atomic
def replace_visit(caller: Caller, patient_id: int, original_timestamp: datetime,
                  lines: list, clinical: dict) -> VisitResult:
    original = _closest_batch(patient_id, caller.doctor_id, original_timestamp)
    batch = PrescriptionLine.objects.filter(patient_id=patient_id, doctor_id=caller.doctor_id,
                                            created_at=original)
    public_uid = batch.values_list('public_uid', flat=True).first()
    deleted, _ = batch.delete()

    timestamp = timezone.now()
    if timestamp <= original:
        timestamp = original + timedelta(microseconds=1)
    count = _insert_lines(doctor_id=caller.doctor_id, patient_id=patient_id, timestamp=timestamp,
                          public_uid=public_uid, lines=lines, clinical=clinical)
    log_action(user_id=caller.user_id, action='visit_replace', object_type='patient',
               object_id=patient_id,
               detail={'from': original.isoformat(), 'to': timestamp.isoformat(),
                       'deleted': deleted, 'lines': count})
    logger.info('Visit of patient %s replaced: %s row(s) out, %s in', patient_id, deleted, count)
    return VisitResult(timestamp=timestamp, patient_id=patient_id, public_uid=public_uid, line_count=count)


# ---------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------
def _closest_batch(patient_id: int, doctor_id: int, approximate: datetime) -> datetime:
    """Return the batch timestamp nearest ``approximate`` within the tolerance window.

    Equal distances resolve to the more recent batch.
    """
    approximate = _aware(approximate)
    window = _tolerance()
    stamps = set(
        PrescriptionLine.objects.filter(
            patient_id=patient_id,
            doctor_id=doctor_id,
            created_at__gte=approximate - window,
            created_at__lte=approximate + window,
        ).values_list('created_at', flat=True)
    )
    if not stamps:
        raise VisitNotFound()
    return min(stamps, key=lambda ts: (abs(ts - approximate), -ts.timestamp()))


def find_visit(patient_id: int, doctor_id: int, approximate_timestamp: datetime) -> Visit:
    stamp = _closest_batch(patient_id, doctor_id, approximate_timestamp)
    lines = list(
        PrescriptionLine.objects.select_related('drug', 'patient', 'doctor', 'doctor__doctor_profile')
        .filter(patient_id=patient_id, doctor_id=doctor_id, created_at=stamp)
        .order_by('id')
    )
    return Visit.from_lines(lines)


def visit_by_public_uid(uid: uuid.UUID) -> Visit:
    lines = list(
        PrescriptionLine.objects.select_related('drug', 'patient', 'doctor', 'doctor__doctor_profile')
        .filter(public_uid=uid)
        .order_by('-created_at', 'id')
    )
    if not lines:
        raise VisitNotFound()
    latest = lines[0].created_at
    return Visit.from_lines([line for line in lines if line.created_at == latest])


def recent_visits(doctor_id: int, limit: int = 10) -> list[dict]:
    rows = (
        PrescriptionLine.objects.filter(doctor_id=doctor_id)
        .values('patient_id', 'patient__name', 'patient__age', 'patient__gender',
                'created_at', 'public_uid', 'diagnosis_text')
        .order_by('-created_at')
        .distinct()[:limit]
    )
    return [{
        'patientId': r['patient_id'],
        'patientName': r['patient__name'],
        'age': r['patient__age'],
        'gender': r['patient__gender'],
        'timestamp': r['created_at'].isoformat(),
        'publicUid': str(r['public_uid']),
        'diagnosis': r['diagnosis_text'],
    } for r in rows]


def patient_history(patient_id: int, doctor_id: int) -> list[Visit]:
    if not Patient.objects.filter(id=patient_id).exists():
        raise PatientNotFound()
    lines = (
        PrescriptionLine.objects.select_related('drug', 'patient', 'doctor')
        .filter(patient_id=patient_id, doctor_id=doctor_id)
        .order_by('-created_at', 'id')
    )
    return [Visit.from_lines(list(group)) for _, group in groupby(lines, key=lambda line: line.created_at)]


def portal_history(patient_id: int) -> list[dict]:
    lines = (
        PrescriptionLine.objects.select_related('doctor', 'doctor__doctor_profile')
        .filter(patient_id=patient_id)
        .order_by('-created_at', 'id')
    )
    visits: dict[uuid.UUID, dict] = {}
    for line in lines:
        if line.public_uid in visits:
            continue
        profile = _profile_of(line.doctor)
        visits[line.public_uid] = {
            'publicUid': str(line.public_uid),
            'visitDate': timezone.localtime(line.created_at).date().isoformat(),
            'timestamp': line.created_at.isoformat(),
            'diagnosis': line.diagnosis_text,
            'clinicName': profile.clinic_name if profile else '',
            'doctorName': _doctor_name(line.doctor),
        }
    return list(visits.values())


# ---------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------
def _profile_of(doctor):
    return getattr(doctor, 'doctor_profile', None) if doctor is not None else None


def _doctor_name(doctor) -> str:
    return doctor.get_full_name() or doctor.username


def visit_document(visit: Visit) -> dict:
    """Structured data a prescription renderer needs for reprint or download."""
    head = visit.head
    profile = _profile_of(visit.doctor)
    patient = visit.patient
    return {
        'publicUid': str(visit.public_uid),
        'downloadUrl': f"{settings.PUBLIC_BASE_URL.rstrip('/')}/prescription/{visit.public_uid}",
        'doctor': {
            'id': visit.doctor.id,
            'name': _doctor_name(visit.doctor),
            'degree': profile.degree if profile else '',
            'specialistTitle': profile.specialist_title if profile else '',
            'bmdcReg': profile.bmdc_reg if profile else '',
            'clinicName': profile.clinic_name if profile else '',
            'chamberAddress': profile.chamber_address if profile else '',
            'phone': profile.phone_number if profile else '',
        },
        'patient': {
            'id': patient.id,
            'name': patient.name,
            'age': patient.age,
            'gender': patient.gender,
            'mobile': patient.mobile,
            'address': patient.address,
        },
        'prescription': {
            'timestamp': visit.created_at.isoformat(),
            'date': timezone.localtime(visit.created_at).date().isoformat(),
            'diagnosis': head.diagnosis_text,
            'chiefComplaint': head.chief_complaint,
            'medicalHistory': head.medical_history,
            'examinationFindings': head.examination_findings,
            'investigations': head.investigations,
            'generalAdvice': head.general_advice,
            'followUpDate': head.follow_up_date.isoformat() if head.follow_up_date else None,
        },
        'items': [{
            'drugId': line.drug_id,
            'genericName': line.drug.generic_name,
            'tradeNames': line.drug.trade_names,
            'strength': line.drug.strength,
            'quantity': line.quantity,
            'sig': line.sig_instruction,
            'duration': line.duration,
            'counselingPoints': line.drug.counseling_points,
        } for line in visit.lines],
    }
