"""
Prescription endpoints for doctors.

Writing a prescription stores one line per drug under a shared batch
timestamp; editing replaces the whole batch.  The timestamp returned by
create/replace is the key used for reprint.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsDoctorRole
from ..serializers.visits import (
    RecentQuerySerializer,
    ReprintQuerySerializer,
    VisitCreateSerializer,
    VisitReplaceSerializer,
    visit_result_payload,
)
from ..services import visits
from ..services.identity import caller_from_request


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def create_prescription(request):
    s = VisitCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = visits.create_visit(
        caller_from_request(request),
        s.validated_data['patient'],
        s.validated_data['lines'],
        s.clinical(),
    )
    return Response(visit_result_payload(result, 'Prescription saved'), status=status.HTTP_201_CREATED)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def replace_prescription(request):
    s = VisitReplaceSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = visits.replace_visit(
        caller_from_request(request),
        s.validated_data['patient_id'],
        s.validated_data['timestamp'],
        s.validated_data['lines'],
        s.clinical(),
    )
    return Response(visit_result_payload(result, 'Prescription updated'))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def reprint_prescription(request, patient_id: int):
    q = ReprintQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    caller = caller_from_request(request)
    visit = visits.find_visit(patient_id, caller.doctor_id, q.validated_data['timestamp'])
    return Response(visits.visit_document(visit))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def recent_prescriptions(request):
    q = RecentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    caller = caller_from_request(request)
    return Response(visits.recent_visits(caller.doctor_id, limit=q.validated_data['limit']))
