"""
Daily summary job: urgent reports and maintenance overdue or due within a week,
mailed to every active admin and manager.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.template.loader import render_to_string
from django.utils import timezone

from allevapp.farms.maintenance import due_soon_window, days_overdue, days_until_due
from allevapp.farms.models import Equipment, Facility
from allevapp.reports.models import Report
from .graph_service import GraphRequestError, get_access_token, get_graph_config, send_mail

logger = logging.getLogger('allevapp.integrations')

User = get_user_model()

URGENCY_COLORS = {
    'high': '#dc2626',
    'critical': '#7c2d12',
}
KIND_LABELS = {
    'equipment': 'Attrezzatura',
    'facility': 'Impianto',
}


class DailySummaryError(Exception):
    """Summary has content but nobody to send it to"""


def collect_urgent_reports():
    """Open reports with high or critical urgency, newest first"""
    reports = Report.objects.filter(
        urgency__in=Report.URGENT_LEVELS
    ).exclude(
        status__in=Report.CLOSED_STATUSES
    ).select_related('farm', 'equipment').order_by('-created_at')

    return [
        {
            'id': report.id,
            'title': report.title,
            'description': report.description,
            'urgency': report.urgency,
            'urgency_label': report.get_urgency_display(),
            'urgency_color': URGENCY_COLORS.get(report.urgency, '#6b7280'),
            'status': report.status,
            'farm_name': report.farm.name if report.farm_id else 'N/A',
            'equipment_name': report.equipment.name if report.equipment_id else None,
            'created_at': report.created_at,
        }
        for report in reports
    ]


def _maintenance_item(asset, kind, days):
    return {
        'id': asset.id,
        'kind': kind,
        'kind_label': KIND_LABELS[kind],
        'name': asset.name,
        'farm_name': asset.farm.name,
        'status': asset.status,
        'facility_type': asset.type if kind == 'facility' else None,
        'facility_type_label': asset.get_type_display() if kind == 'facility' else None,
        'last_maintenance': asset.last_maintenance,
        'next_maintenance_due': asset.next_maintenance_due,
        'days': days,
    }


def collect_maintenance(today=None):
    """
    Equipment and facilities with maintenance overdue or due soon.

    Returns (overdue, due_soon). Overdue means due before today; due soon
    means due from today through today + 7 days inclusive.
    """
    today = today or timezone.localdate()
    window_start, window_end = due_soon_window(today)
    overdue = []
    due_soon = []

    for model, kind in ((Equipment, 'equipment'), (Facility, 'facility')):
        assets = model.objects.filter(next_maintenance_due__isnull=False).select_related('farm')
        for asset in assets.filter(next_maintenance_due__lt=today).order_by('next_maintenance_due'):
            overdue.append(_maintenance_item(asset, kind, days_overdue(asset.next_maintenance_due, today)))
        due_assets = assets.filter(
            next_maintenance_due__gte=window_start,
            next_maintenance_due__lte=window_end,
        ).order_by('next_maintenance_due')
        for asset in due_assets:
            due_soon.append(_maintenance_item(asset, kind, days_until_due(asset.next_maintenance_due, today)))

    return overdue, due_soon


def build_daily_summary(today=None):
    today = today or timezone.localdate()
    overdue, due_soon = collect_maintenance(today)
    return {
        'today': today,
        'urgent_reports': collect_urgent_reports(),
        'overdue': overdue,
        'due_soon': due_soon,
    }


def get_summary_recipients():
    """Active admins and managers that have an email address"""
    return list(
        User.objects.filter(
            role__in=[User.ROLE_ADMIN, User.ROLE_MANAGER],
            is_active=True,
        ).exclude(email='').exclude(email__isnull=True).order_by('email')
    )


def send_daily_summary(today=None):
    """
    Build the daily summary and mail it to every recipient.

    Returns a result dict. Nothing is sent (and Graph is never contacted) when
    there is nothing to report. Configuration and authentication errors
    propagate; per-recipient send failures are collected in the result.
    """
    summary = build_daily_summary(today)
    counts = {
        'urgent_reports': len(summary['urgent_reports']),
        'overdue_maintenance': len(summary['overdue']),
        'due_soon_maintenance': len(summary['due_soon']),
    }

    if not any(counts.values()):
        logger.info('Daily summary skipped: nothing to report today')
        return {
            'success': True,
            'message': 'Nessun elemento da segnalare oggi',
            'sent': False,
            'summary': counts,
        }

    recipients = get_summary_recipients()
    if not recipients:
        raise DailySummaryError('Nessun destinatario trovato per il report giornaliero')

    config = get_graph_config()
    access_token = get_access_token(config)

    subject = f"AllevApp - Report Giornaliero {summary['today'].strftime('%d/%m/%Y')}"
    html = render_to_string('integrations/daily_summary_email.html', {
        **summary,
        'generated_at': timezone.localtime(),
        'contact_email': getattr(settings, 'ALLEVAPP_CONTACT', {}).get('EMAIL'),
    })

    email_results = []
    for recipient in recipients:
        try:
            send_mail(
                recipient.email,
                subject,
                html,
                to_name=recipient.get_display_name(),
                access_token=access_token,
                config=config,
            )
            email_results.append({'success': True, 'recipient': recipient.email})
        except GraphRequestError as e:
            logger.warning(f"Daily summary to {recipient.email} failed: {e.error}")
            email_results.append({'success': False, 'recipient': recipient.email, 'error': e.error})

    successful = sum(1 for r in email_results if r['success'])
    failed = len(email_results) - successful
    logger.info(f"Daily summary sent to {successful}/{len(recipients)} recipient(s)")

    return {
        'success': True,
        'message': 'Report giornaliero inviato con successo',
        'sent': True,
        'recipients': len(recipients),
        'successful_sends': successful,
        'failed_sends': failed,
        'summary': counts,
        'email_results': email_results,
    }
