"""Utility functions for audit logging and role checks"""
import logging

from rest_framework.exceptions import ValidationError

from .models import AuditLog, User

logger = logging.getLogger('allevapp.core')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, quote_accept, order_create, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., quote title)
        object_reference: Reference identifier (e.g., order number)
    """
    if not action or not model_name or object_id is None:
        logger.warning(
            f"Audit log creation skipped: missing required fields "
            f"(action={action}, model_name={model_name}, object_id={object_id})"
        )
        return None

    audit_user = user
    if audit_user is None and request is not None and hasattr(request, 'user'):
        audit_user = request.user

    try:
        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        # Audit logging never fails the main operation
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def is_admin_user(user):
    """Admin role, superuser or staff"""
    if not user or not user.is_authenticated:
        return False
    return user.role == User.ROLE_ADMIN or user.is_superuser or user.is_staff


def is_manager_or_admin(user):
    if not user or not user.is_authenticated:
        return False
    return is_admin_user(user) or user.role == User.ROLE_MANAGER


def get_user_farm_ids(user):
    """
    Farms a user is restricted to.

    Returns None when the user sees every farm (admins, managers), otherwise the
    list of farm IDs a technician is assigned to.
    """
    if not user.is_technician:
        return None
    return list(user.assigned_farms.values_list('id', flat=True))


def restrict_to_user_farms(queryset, user, farm_field='farm_id'):
    """Limit a queryset to the farms a technician is assigned to"""
    farm_ids = get_user_farm_ids(user)
    if farm_ids is None:
        return queryset
    return queryset.filter(**{f'{farm_field}__in': farm_ids})


def can_access_farm(user, farm):
    """Whether the user may create or move records onto `farm`"""
    farm_ids = get_user_farm_ids(user)
    return farm_ids is None or (farm is not None and farm.id in farm_ids)


def get_pagination_params(request, default_limit=50, max_limit=500):
    """
    Parse `page` and `limit` query params.

    Raises ValidationError (400) on non-numeric or out of range values.
    """
    errors = {}
    try:
        page = int(request.query_params.get('page', 1))
        if page < 1:
            errors['page'] = 'Must be a positive integer'
    except (TypeError, ValueError):
        errors['page'] = 'Must be a positive integer'
    try:
        limit = int(request.query_params.get('limit', default_limit))
        if limit < 1 or limit > max_limit:
            errors['limit'] = f'Must be between 1 and {max_limit}'
    except (TypeError, ValueError):
        errors['limit'] = f'Must be between 1 and {max_limit}'
    if errors:
        raise ValidationError(errors)
    return page, limit
