from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Patient
from ..permissions import IsDoctorRole
from ..serializers.visits import visit_summary_payload
from ..services import visits
from ..services.identity import caller_from_request
from ..services.patients import patient_summary


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def patient_history(request, patient_id: int):
    """A patient's visits with the calling doctor, newest first."""
    caller = caller_from_request(request)
    history = visits.patient_history(patient_id, caller.doctor_id)
    return Response({
        'patient': patient_summary(Patient.objects.get(id=patient_id)),
        'visits': [visit_summary_payload(v) for v in history],
    })
