import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model

from allevapp.core.utils import create_audit_log, is_admin_user, is_manager_or_admin
from .daily_summary import DailySummaryError, send_daily_summary
from .graph_service import (
    GraphConfigurationError, GraphError, REQUIRED_SETTINGS, create_calendar_event, default_contact_info,
    get_graph_config, send_password_email, send_quote_request_email
)
from .serializers import CalendarEventSerializer, PasswordEmailSerializer, QuoteEmailSerializer

logger = logging.getLogger('allevapp.integrations')

User = get_user_model()


def graph_error_response(error):
    return Response(error.to_response_data(), status=error.status_code)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def send_quote_email(request):
    """Send a quote request email to a supplier"""
    serializer = QuoteEmailSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    try:
        result = send_quote_request_email(
            to=data['to'],
            supplier_name=data['supplier_name'],
            quote_title=data['quote_title'],
            quote_description=data['quote_description'],
            farm_name=data.get('farm_name'),
            due_date=data.get('due_date'),
            contact_info=data.get('contact_info') or default_contact_info(request.user.email or None),
        )
    except GraphError as e:
        return graph_error_response(e)

    create_audit_log(
        request=request,
        action='email_send',
        model_name='QuoteEmail',
        object_id=data['to'],
        object_name=data['quote_title'],
    )
    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def send_password_email_view(request):
    """Send login credentials to a user (admin only)"""
    if not is_admin_user(request.user):
        return Response({'error': 'Only administrators can send credentials'}, status=status.HTTP_403_FORBIDDEN)

    serializer = PasswordEmailSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        result = send_password_email(**serializer.validated_data)
    except GraphError as e:
        return graph_error_response(e)

    create_audit_log(
        request=request,
        action='email_send',
        model_name='PasswordEmail',
        object_id=serializer.validated_data['username'],
        object_name=serializer.validated_data['to'],
    )
    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def send_daily_summary_view(request):
    """Trigger the daily summary email (admin/manager)"""
    if not is_manager_or_admin(request.user):
        return Response(
            {'error': 'Only administrators and managers can send the daily summary'},
            status=status.HTTP_403_FORBIDDEN
        )

    try:
        result = send_daily_summary()
    except GraphError as e:
        return graph_error_response(e)
    except DailySummaryError as e:
        logger.error(f"Daily summary not sent: {str(e)}")
        return Response({
            'success': False,
            'error': str(e),
            'message': "Errore nell'invio del report giornaliero",
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_calendar_event_view(request):
    """Create a Microsoft 365 calendar event, optionally inviting an AllevApp user"""
    serializer = CalendarEventSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    attendees = list(data.get('attendees', []))
    selected_user_id = data.get('selected_user')
    if selected_user_id:
        selected_user = User.objects.filter(pk=selected_user_id, is_active=True).first()
        if selected_user is None:
            return Response({'error': 'Selected user not found'}, status=status.HTTP_400_BAD_REQUEST)
        if selected_user.email and selected_user.email not in attendees:
            attendees.append(selected_user.email)

    try:
        result = create_calendar_event(
            subject=data['subject'],
            description=data.get('description', ''),
            start=data['start_date_time'],
            end=data.get('end_date_time'),
            location=data.get('location') or None,
            attendees=attendees,
            is_all_day=data.get('is_all_day', False),
            reminder_minutes=data.get('reminder_minutes', 15),
        )
    except GraphError as e:
        return graph_error_response(e)

    return Response(result, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def integration_status(request):
    """Whether Microsoft 365 is configured, without contacting it"""
    try:
        config = get_graph_config()
    except GraphConfigurationError as e:
        return Response({
            'configured': False,
            'missing': e.missing,
            'message': e.message,
        })
    return Response({
        'configured': True,
        'missing': [],
        'sender_email': config['SENDER_EMAIL'],
        'required_variables': list(REQUIRED_SETTINGS.values()),
    })
