import logging
from datetime import datetime, timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, ProtectedError
from django.shortcuts import get_object_or_404
from django.utils import timezone

from allevapp.core.utils import can_access_farm, create_audit_log, is_manager_or_admin, restrict_to_user_farms
from .maintenance import due_soon_window
from .models import Farm, Barn, Equipment, Facility
from .serializers import (
    FarmSerializer, BarnSerializer, EquipmentSerializer, FacilitySerializer,
    MaintenanceRecordSerializer
)

logger = logging.getLogger('allevapp.farms')


def _filter_assets(queryset, request):
    """Query-param filters shared by equipment and facilities"""
    farm = request.query_params.get('farm', None)
    status_filter = request.query_params.get('status', None)
    search = request.query_params.get('search', None)
    maintenance = request.query_params.get('maintenance', None)

    if farm:
        queryset = queryset.filter(farm_id__in=farm.split(','))
    if status_filter:
        queryset = queryset.filter(status__in=status_filter.split(','))
    if search:
        queryset = queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))
    if maintenance == 'overdue':
        queryset = queryset.filter(next_maintenance_due__lt=timezone.localdate())
    elif maintenance == 'due_soon':
        start, end = due_soon_window()
        queryset = queryset.filter(next_maintenance_due__gte=start, next_maintenance_due__lte=end)
    return restrict_to_user_farms(queryset, request.user)


def _record_maintenance(request, asset, model_name):
    serializer = MaintenanceRecordSerializer(data=request.data)
    if not serializer.is_valid():
        return None, Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    performed_on = serializer.validated_data.get('performed_on') or timezone.localdate()
    asset.record_maintenance(performed_on)
    # Back to working once serviced
    asset.status = 'working'
    asset.save()
    create_audit_log(
        request=request,
        action='maintenance_record',
        model_name=model_name,
        object_id=asset.id,
        object_name=asset.name,
        changes={
            'last_maintenance': asset.last_maintenance.isoformat(),
            'next_maintenance_due': asset.next_maintenance_due.isoformat(),
        },
    )
    return asset, None


# Farm views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def farm_list_create(request):
    """List farms visible to the user or create a new farm"""
    if request.method == 'GET':
        queryset = Farm.objects.all().prefetch_related('barns', 'technicians').select_related('created_by')
        queryset = restrict_to_user_farms(queryset, request.user, farm_field='id')
        company = request.query_params.get('company', None)
        search = request.query_params.get('search', None)
        if company:
            queryset = queryset.filter(company=company)
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(address__icontains=search))
        return Response(FarmSerializer(queryset, many=True).data)

    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only administrators and managers can create farms'}, status=status.HTTP_403_FORBIDDEN)
    serializer = FarmSerializer(data=request.data)
    if serializer.is_valid():
        farm = serializer.save(created_by=request.user)
        logger.info(f"Farm '{farm.name}' ({farm.company}) created by {request.user.username}")
        return Response(FarmSerializer(farm).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def farm_detail(request, pk):
    """Retrieve, update or delete a farm"""
    farm = get_object_or_404(restrict_to_user_farms(Farm.objects.all(), request.user, farm_field='id'), pk=pk)

    if request.method == 'GET':
        return Response(FarmSerializer(farm).data)

    if not is_manager_or_admin(request.user):
        return Response({'error': 'Only administrators and managers can modify farms'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = FarmSerializer(farm, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            farm.delete()
        except ProtectedError:
            return Response(
                {'error': 'Farm has confirmed orders and cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST
            )
        logger.info(f"Farm {pk} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def farm_barns(request, pk):
    """List or add barns for a farm"""
    farm = get_object_or_404(restrict_to_user_farms(Farm.objects.all(), request.user, farm_field='id'), pk=pk)

    if request.method == 'GET':
        return Response(BarnSerializer(farm.barns.all(), many=True).data)

    data = request.data.copy()
    data['farm'] = farm.id
    serializer = BarnSerializer(data=data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def barn_detail(request, pk):
    barn = get_object_or_404(restrict_to_user_farms(Barn.objects.select_related('farm'), request.user), pk=pk)

    if request.method == 'GET':
        return Response(BarnSerializer(barn).data)
    elif request.method == 'PATCH':
        serializer = BarnSerializer(barn, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        barn.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Equipment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def equipment_list_create(request):
    """List all equipment or create new equipment"""
    if request.method == 'GET':
        queryset = _filter_assets(Equipment.objects.select_related('farm', 'barn'), request)
        barn = request.query_params.get('barn', None)
        if barn:
            queryset = queryset.filter(barn_id=barn)
        return Response(EquipmentSerializer(queryset, many=True).data)

    serializer = EquipmentSerializer(data=request.data)
    if serializer.is_valid():
        if not can_access_farm(request.user, serializer.validated_data.get('farm')):
            return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def equipment_detail(request, pk):
    """Retrieve, update or delete equipment"""
    equipment = get_object_or_404(
        restrict_to_user_farms(Equipment.objects.select_related('farm', 'barn'), request.user), pk=pk
    )

    if request.method == 'GET':
        return Response(EquipmentSerializer(equipment).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = EquipmentSerializer(equipment, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            if 'farm' in serializer.validated_data and not can_access_farm(request.user, serializer.validated_data['farm']):
                return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        equipment.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def equipment_record_maintenance(request, pk):
    """Register a maintenance and schedule the next one"""
    equipment = get_object_or_404(restrict_to_user_farms(Equipment.objects.all(), request.user), pk=pk)
    equipment, error_response = _record_maintenance(request, equipment, 'Equipment')
    if error_response:
        return error_response
    return Response(EquipmentSerializer(equipment).data)


# Facility views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def facility_list_create(request):
    """List all facilities or create a new facility"""
    if request.method == 'GET':
        queryset = _filter_assets(Facility.objects.select_related('farm'), request)
        facility_type = request.query_params.get('type', None)
        if facility_type:
            queryset = queryset.filter(type__in=facility_type.split(','))
        return Response(FacilitySerializer(queryset, many=True).data)

    serializer = FacilitySerializer(data=request.data)
    if serializer.is_valid():
        if not can_access_farm(request.user, serializer.validated_data.get('farm')):
            return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def facility_detail(request, pk):
    """Retrieve, update or delete a facility"""
    facility = get_object_or_404(restrict_to_user_farms(Facility.objects.select_related('farm'), request.user), pk=pk)

    if request.method == 'GET':
        return Response(FacilitySerializer(facility).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = FacilitySerializer(facility, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            if 'farm' in serializer.validated_data and not can_access_farm(request.user, serializer.validated_data['farm']):
                return Response({'error': 'You are not assigned to this farm'}, status=status.HTTP_403_FORBIDDEN)
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        facility.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def facility_record_maintenance(request, pk):
    """Register a maintenance and schedule the next one"""
    facility = get_object_or_404(restrict_to_user_farms(Facility.objects.all(), request.user), pk=pk)
    facility, error_response = _record_maintenance(request, facility, 'Facility')
    if error_response:
        return error_response
    return Response(FacilitySerializer(facility).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def maintenance_calendar(request):
    """Equipment and facilities with maintenance due in a date range (defaults to the current month)"""
    today = timezone.localdate()
    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)

    try:
        date_from = datetime.strptime(date_from, '%Y-%m-%d').date() if date_from else today.replace(day=1)
        if date_to:
            date_to = datetime.strptime(date_to, '%Y-%m-%d').date()
        else:
            next_month = (date_from.replace(day=28) + timedelta(days=4)).replace(day=1)
            date_to = next_month - timedelta(days=1)
    except ValueError:
        return Response({'error': 'Dates must use the YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)

    if date_from > date_to:
        return Response({'error': 'date_from must not be after date_to'}, status=status.HTTP_400_BAD_REQUEST)

    range_filter = {'next_maintenance_due__gte': date_from, 'next_maintenance_due__lte': date_to}
    equipment = restrict_to_user_farms(Equipment.objects.select_related('farm').filter(**range_filter), request.user)
    facilities = restrict_to_user_farms(Facility.objects.select_related('farm').filter(**range_filter), request.user)

    items = []
    for item in equipment:
        items.append({
            'id': item.id,
            'kind': 'equipment',
            'name': item.name,
            'farm': item.farm_id,
            'farm_name': item.farm.name,
            'status': item.status,
            'last_maintenance': item.last_maintenance,
            'next_maintenance_due': item.next_maintenance_due,
            'maintenance_interval_days': item.maintenance_interval_days,
            'is_maintenance_overdue': item.is_maintenance_overdue,
            'is_maintenance_due_soon': item.is_maintenance_due_soon,
        })
    for item in facilities:
        items.append({
            'id': item.id,
            'kind': 'facility',
            'name': item.name,
            'facility_type': item.type,
            'farm': item.farm_id,
            'farm_name': item.farm.name,
            'status': item.status,
            'last_maintenance': item.last_maintenance,
            'next_maintenance_due': item.next_maintenance_due,
            'maintenance_interval_days': item.maintenance_interval_days,
            'is_maintenance_overdue': item.is_maintenance_overdue,
            'is_maintenance_due_soon': item.is_maintenance_due_soon,
        })
    items.sort(key=lambda entry: (entry['next_maintenance_due'], entry['name']))

    return Response({
        'period': {'from': date_from.isoformat(), 'to': date_to.isoformat()},
        'count': len(items),
        'items': items,
    })
