"""
Doctor-only management of the clinic's receptionists and assistants.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsDoctorRole
from ..serializers.staff import StaffCreateSerializer, StaffStatusSerializer, staff_payload
from ..services import staff
from ..services.identity import caller_from_request


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def staff_collection(request):
    caller = caller_from_request(request)
    if request.method == 'GET':
        return Response([staff_payload(m) for m in staff.list_staff(caller)])

    s = StaffCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    member = staff.create_staff(caller, **s.validated_data)
    return Response({'message': 'Staff created successfully', 'staff': staff_payload(member)},
                    status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def remove_staff(request, staff_id: int):
    staff.delete_staff(caller_from_request(request), staff_id)
    return Response({'message': 'Staff removed'})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def staff_status(request, staff_id: int):
    s = StaffStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    member = staff.set_staff_status(caller_from_request(request), staff_id, s.validated_data['status'])
    return Response({'message': 'Status updated', 'staff': staff_payload(member)})
