import logging
import secrets

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.core.paginator import Paginator
from django.db.models import Q
from django.shortcuts import get_object_or_404

from allevapp.integrations.graph_service import GraphError, send_password_email
from .models import AuditLog
from .serializers import UserSerializer, UserCreateSerializer, AuditLogSerializer
from .utils import create_audit_log, get_pagination_params, is_admin_user

logger = logging.getLogger('allevapp.core')

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user"""
    return Response(UserSerializer(request.user).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_list_create(request):
    """List users (any role) or create a new user (admin only)"""
    if request.method == 'GET':
        users = User.objects.all().prefetch_related('assigned_farms').order_by('full_name', 'username')
        role = request.query_params.get('role', None)
        active = request.query_params.get('active', None)
        if role:
            users = users.filter(role__in=role.split(','))
        if active is not None:
            users = users.filter(is_active=active.lower() in ('1', 'true', 'yes'))
        return Response(UserSerializer(users, many=True).data)

    if not is_admin_user(request.user):
        return Response({'error': 'Only administrators can create users'}, status=status.HTTP_403_FORBIDDEN)

    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    send_credentials = serializer.validated_data.get('send_credentials', False)
    password = serializer.validated_data.get('password') or secrets.token_urlsafe(9)
    serializer.validated_data['password'] = password
    user = serializer.save()
    logger.info(f"User '{user.username}' created by {request.user.username}")

    create_audit_log(
        request=request,
        action='create',
        model_name='User',
        object_id=user.id,
        object_name=user.get_display_name(),
        changes={'username': user.username, 'role': user.role},
    )

    response_data = UserSerializer(user).data
    if send_credentials:
        try:
            send_password_email(
                to=user.email,
                user_name=user.get_display_name(),
                username=user.username,
                password=password,
                role=user.role,
            )
            response_data['email_result'] = {'success': True, 'message': 'Email inviata con successo'}
        except GraphError as e:
            # The account exists either way; the admin gets told the email did not go out
            logger.warning(f"Credentials email for {user.username} not sent: {e.error}")
            response_data['email_result'] = e.to_response_data()
    return Response(response_data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or delete a user (changes are admin only)"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    if not is_admin_user(request.user):
        return Response({'error': 'Only administrators can modify users'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        user_id = user.id
        username = user.username
        user.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='User',
            object_id=user_id,
            object_name=username,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """Paginated audit log (admin only)"""
    if not is_admin_user(request.user):
        return Response({'error': 'Only administrators can view audit logs'}, status=status.HTTP_403_FORBIDDEN)

    queryset = AuditLog.objects.select_related('user').all()
    action = request.query_params.get('action', None)
    model_name = request.query_params.get('model_name', None)
    search = request.query_params.get('search', None)
    if action:
        queryset = queryset.filter(action=action)
    if model_name:
        queryset = queryset.filter(model_name=model_name)
    if search:
        queryset = queryset.filter(
            Q(object_name__icontains=search) |
            Q(object_reference__icontains=search) |
            Q(user__username__icontains=search)
        )

    page, limit = get_pagination_params(request)
    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    return Response({
        'results': AuditLogSerializer(page_obj, many=True).data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })
