import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from clinic.exceptions import PatientNotFound, VisitNotFound
from clinic.models import AuditEvent, Patient, PrescriptionLine
from clinic.serializers.visits import VisitCreateSerializer
from clinic.services import visits

pytestmark = pytest.mark.django_db

CLINICAL = {
    'diagnosis_text': 'Viral fever',
    'general_advice': 'Plenty of fluids',
    'chief_complaint': 'Fever for 3 days',
    'medical_history': 'None',
    'examination_findings': {'temp': '101F'},
    'investigations': 'CBC',
    'follow_up_date': None,
}


def _lines(*drugs):
    return [{'drug_id': d.id if d else None, 'quantity': '1+0+1', 'sig_instruction': 'After meal',
             'duration': '5 days'} for d in drugs]


def _write_batch(doctor, patient, drug, ts, uid=None, diagnosis='Dx'):
    return PrescriptionLine.objects.create(
        doctor=doctor, patient=patient, drug=drug, created_at=ts,
        public_uid=uid or uuid.uuid4(), diagnosis_text=diagnosis,
    )


def test_create_visit_skips_lines_without_a_known_drug(doctor_caller, drugs):
    result = visits.create_visit(
        doctor_caller, {'name': 'Rafiq Islam', 'age': 30},
        _lines(drugs[0], None) + [{'drug_id': 999999, 'quantity': '1'}], CLINICAL,
    )

    rows = PrescriptionLine.objects.filter(patient_id=result.patient_id)
    assert result.line_count == 1
    assert rows.count() == 1
    row = rows.get()
    assert row.created_at == result.timestamp
    assert row.public_uid == result.public_uid
    assert row.examination_findings == {'temp': '101F'}
    assert row.diagnosis_text == 'Viral fever'


def test_create_visit_lines_share_one_timestamp(doctor_caller, drugs):
    result = visits.create_visit(doctor_caller, {'name': 'Nasima Akter'}, _lines(*drugs), CLINICAL)
    stamps = set(PrescriptionLine.objects.filter(patient_id=result.patient_id)
                 .values_list('created_at', flat=True))
    assert stamps == {result.timestamp}
    assert result.line_count == 3
    assert AuditEvent.objects.filter(action='visit_create', object_id=result.patient_id).exists()


def test_create_visit_updates_existing_patient(doctor_caller, patients, drugs):
    patient = patients[0]
    visits.create_visit(doctor_caller, {'id': patient.id, 'mobile': '01799999999', 'address': 'Mirpur'},
                        _lines(drugs[0]), CLINICAL)
    patient.refresh_from_db()
    assert patient.mobile == '01799999999'
    assert patient.address == 'Mirpur'
    assert patient.name == 'Patient 1'


def test_create_visit_unknown_patient_rolls_back(doctor_caller, drugs):
    with pytest.raises(PatientNotFound):
        visits.create_visit(doctor_caller, {'id': 987654}, _lines(drugs[0]), CLINICAL)
    assert PrescriptionLine.objects.count() == 0


def test_find_visit_with_exact_timestamp(doctor_caller, doctor, drugs):
    result = visits.create_visit(doctor_caller, {'name': 'Habib'}, _lines(drugs[0], drugs[1]), CLINICAL)
    visit = visits.find_visit(result.patient_id, doctor.id, result.timestamp)
    assert visit.created_at == result.timestamp
    assert sorted(line.drug_id for line in visit.lines) == sorted([drugs[0].id, drugs[1].id])


def test_find_visit_tolerance_window(doctor_caller, doctor, drugs):
    result = visits.create_visit(doctor_caller, {'name': 'Habib'}, _lines(drugs[0]), CLINICAL)
    near = visits.find_visit(result.patient_id, doctor.id, result.timestamp + timedelta(seconds=1, milliseconds=500))
    assert near.created_at == result.timestamp
    with pytest.raises(VisitNotFound):
        visits.find_visit(result.patient_id, doctor.id, result.timestamp + timedelta(seconds=5))


def test_find_visit_closest_batch_wins(doctor, patients, drugs):
    base = timezone.now().replace(microsecond=0)
    _write_batch(doctor, patients[0], drugs[0], base, diagnosis='first')
    _write_batch(doctor, patients[0], drugs[1], base + timedelta(milliseconds=1500), diagnosis='second')

    visit = visits.find_visit(patients[0].id, doctor.id, base + timedelta(milliseconds=400))
    assert visit.head.diagnosis_text == 'first'
    visit = visits.find_visit(patients[0].id, doctor.id, base + timedelta(seconds=1))
    assert visit.head.diagnosis_text == 'second'


def test_find_visit_tie_goes_to_most_recent(doctor, patients, drugs):
    base = timezone.now().replace(microsecond=0)
    _write_batch(doctor, patients[0], drugs[0], base, diagnosis='older')
    _write_batch(doctor, patients[0], drugs[1], base + timedelta(seconds=2), diagnosis='newer')

    visit = visits.find_visit(patients[0].id, doctor.id, base + timedelta(seconds=1))
    assert visit.head.diagnosis_text == 'newer'


def test_find_visit_is_scoped_to_doctor(doctor_caller, other_doctor, drugs):
    result = visits.create_visit(doctor_caller, {'name': 'Habib'}, _lines(drugs[0]), CLINICAL)
    with pytest.raises(VisitNotFound):
        visits.find_visit(result.patient_id, other_doctor.id, result.timestamp)


def test_replace_visit_moves_batch_to_new_timestamp(doctor_caller, doctor, drugs):
    original = visits.create_visit(doctor_caller, {'name': 'Shirin'}, _lines(drugs[0]), CLINICAL)
    edited = dict(CLINICAL, diagnosis_text='Typhoid fever')

    result = visits.replace_visit(doctor_caller, original.patient_id, original.timestamp,
                                  _lines(*drugs), edited)

    assert result.timestamp > original.timestamp
    assert result.public_uid == original.public_uid
    assert result.line_count == 3
    rows = PrescriptionLine.objects.filter(patient_id=original.patient_id)
    assert not rows.filter(created_at=original.timestamp).exists()
    assert rows.filter(created_at=result.timestamp).count() == 3
    assert set(rows.values_list('diagnosis_text', flat=True)) == {'Typhoid fever'}


def test_replace_visit_accepts_approximate_timestamp(doctor_caller, drugs):
    original = visits.create_visit(doctor_caller, {'name': 'Shirin'}, _lines(drugs[0]), CLINICAL)
    result = visits.replace_visit(doctor_caller, original.patient_id,
                                  original.timestamp - timedelta(seconds=1), _lines(drugs[1]), CLINICAL)
    assert PrescriptionLine.objects.filter(patient_id=original.patient_id).count() == 1
    assert result.line_count == 1


def test_replace_missing_visit(doctor_caller, patients, drugs):
    with pytest.raises(VisitNotFound):
        visits.replace_visit(doctor_caller, patients[0].id, timezone.now(), _lines(drugs[0]), CLINICAL)


def test_replace_visit_failure_keeps_original(doctor_caller, drugs, monkeypatch):
    original = visits.create_visit(doctor_caller, {'name': 'Shirin'}, _lines(drugs[0], drugs[1]), CLINICAL)

    def boom(**kwargs):
        raise RuntimeError('insert failed')

    monkeypatch.setattr(visits, '_insert_lines', boom)
    with pytest.raises(RuntimeError):
        visits.replace_visit(doctor_caller, original.patient_id, original.timestamp, _lines(drugs[2]), CLINICAL)

    assert PrescriptionLine.objects.filter(patient_id=original.patient_id,
                                           created_at=original.timestamp).count() == 2


def test_history_groups_lines_by_visit(doctor_caller, doctor, drugs):
    first = visits.create_visit(doctor_caller, {'name': 'Tanvir'}, _lines(drugs[0], drugs[1]), CLINICAL)
    second = visits.create_visit(doctor_caller, {'id': first.patient_id}, _lines(drugs[2]),
                                 dict(CLINICAL, diagnosis_text='Allergy'))

    history = visits.patient_history(first.patient_id, doctor.id)
    assert [v.created_at for v in history] == [second.timestamp, first.timestamp]
    assert [len(v.lines) for v in history] == [1, 2]

    portal = visits.portal_history(first.patient_id)
    assert [p['publicUid'] for p in portal] == [str(second.public_uid), str(first.public_uid)]
    assert portal[0]['diagnosis'] == 'Allergy'
    assert portal[0]['clinicName'] == 'Care Centre'


def test_patient_history_unknown_patient(doctor):
    with pytest.raises(PatientNotFound):
        visits.patient_history(123456, doctor.id)


def test_recent_visits_lists_each_batch_once(doctor_caller, doctor, drugs):
    visits.create_visit(doctor_caller, {'name': 'Ayesha', 'age': 33}, _lines(*drugs), CLINICAL)
    recent = visits.recent_visits(doctor.id)
    assert len(recent) == 1
    assert recent[0]['patientName'] == 'Ayesha'
    assert recent[0]['diagnosis'] == 'Viral fever'


def test_document_by_public_uid(doctor_caller, drugs):
    result = visits.create_visit(doctor_caller, {'name': 'Farzana', 'gender': 'Female'},
                                 _lines(drugs[0]), CLINICAL)
    doc = visits.visit_document(visits.visit_by_public_uid(result.public_uid))

    assert doc['publicUid'] == str(result.public_uid)
    assert doc['patient']['name'] == 'Farzana'
    assert doc['doctor']['clinicName'] == 'Care Centre'
    assert doc['prescription']['diagnosis'] == 'Viral fever'
    assert doc['items'][0]['genericName'] == 'Paracetamol'
    assert doc['downloadUrl'].endswith(f'/prescription/{result.public_uid}')

    with pytest.raises(VisitNotFound):
        visits.visit_by_public_uid(uuid.uuid4())


def test_payload_normalisation():
    s = VisitCreateSerializer(data={
        'patient': {'name': '<b>Karim</b>', 'referredBy': 'Dr. X'},
        'lines': [{'drugId': 7, 'sig': '1+0+1'}, {'drug_id': None}],
        'diagnosis': 'Fever',
        'examination_findings': '{"bp": "120/80"}',
    })
    assert s.is_valid(), s.errors
    assert s.validated_data['patient']['name'] == 'Karim'
    assert s.validated_data['patient']['referred_by'] == 'Dr. X'
    assert s.validated_data['lines'][0] == {'drug_id': 7, 'sig_instruction': '1+0+1'}
    assert s.clinical()['diagnosis_text'] == 'Fever'
    assert s.clinical()['examination_findings'] == {'bp': '120/80'}

    plain = VisitCreateSerializer(data={'patient': {'name': 'Karim'}, 'lines': [],
                                        'examination_findings': 'normal chest'})
    assert plain.is_valid(), plain.errors
    assert plain.clinical()['examination_findings'] == {'other': 'normal chest'}


def test_new_patient_requires_name():
    s = VisitCreateSerializer(data={'patient': {'mobile': '0171'}, 'lines': []})
    assert not s.is_valid()
    assert 'patient' in s.errors


def test_clinical_text_with_symbols_is_stored_as_typed(doctor_caller, doctor, drugs):
    s = VisitCreateSerializer(data={
        'patient': {'name': 'Karim & Sons <i>Ltd</i>'},
        'lines': [{'drug_id': drugs[0].id, 'sig': '1+0+1 & after meal', 'quantity': '<10'}],
        'diagnosis': 'BP > 140/90',
        'advice': 'Salt < 5 g/day <script>alert(1)</script>',
        'examination_findings': {'bp': '<b>150/95</b> & rising', 'pulse': 88},
    })
    assert s.is_valid(), s.errors

    result = visits.create_visit(doctor_caller, s.validated_data['patient'],
                                 s.validated_data['lines'], s.clinical())
    visit = visits.find_visit(result.patient_id, doctor.id, result.timestamp)

    assert visit.patient.name == 'Karim & Sons Ltd'
    assert visit.head.diagnosis_text == 'BP > 140/90'
    assert visit.head.general_advice == 'Salt < 5 g/day alert(1)'
    assert visit.head.sig_instruction == '1+0+1 & after meal'
    assert visit.head.quantity == '<10'
    assert visit.head.examination_findings == {'bp': '150/95 & rising', 'pulse': 88}
