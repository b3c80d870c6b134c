"""
Microsoft Graph service for transactional email and calendar events.
Authenticates with the OAuth2 client-credentials flow on every operation and
sends mail / creates events on behalf of the configured sender mailbox.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Union

import requests
from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

logger = logging.getLogger('allevapp.integrations')

GRAPH_TOKEN_URL = 'https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token'
GRAPH_SCOPE = 'https://graph.microsoft.com/.default'
GRAPH_API_BASE = 'https://graph.microsoft.com/v1.0'

# Settings key -> environment variable that feeds it
REQUIRED_SETTINGS = {
    'TENANT_ID': 'MICROSOFT_TENANT_ID',
    'CLIENT_ID': 'MICROSOFT_CLIENT_ID',
    'CLIENT_SECRET': 'MICROSOFT_CLIENT_SECRET',
    'SENDER_EMAIL': 'MICROSOFT_SENDER_EMAIL',
}

SYSTEM_SENDER_NAME = 'AllevApp Sistema'

ROLE_LABELS = {
    'admin': 'Amministratore',
    'manager': 'Manager',
    'technician': 'Tecnico',
}


class GraphError(Exception):
    """Base class for Microsoft Graph failures, carries an HTTP status and a hint"""
    status_code = 500
    default_message = 'Errore Microsoft 365'

    def __init__(self, error: str, message: Optional[str] = None,
                 status_code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_response_data(self) -> Dict[str, Any]:
        data = {
            'success': False,
            'error': self.error,
            'message': self.message,
        }
        if self.details:
            data['details'] = self.details
        return data


class GraphConfigurationError(GraphError):
    """Credentials or sender mailbox are not configured"""
    default_message = 'Configurazione Microsoft 365 non completata'

    def __init__(self, missing: List[str]):
        self.missing = missing
        error = (
            f"Microsoft 365 credentials not configured. Missing: {', '.join(missing)}. "
            f"Register an application in Azure AD (Entra ID), grant the Mail.Send and "
            f"Calendars.ReadWrite application permissions with admin consent, create a client "
            f"secret, then set {', '.join(REQUIRED_SETTINGS.values())}."
        )
        super().__init__(error)


class GraphAuthenticationError(GraphError):
    """Token endpoint refused the client credentials"""
    default_message = 'Errore di autenticazione Microsoft 365'


class GraphRequestError(GraphError):
    """Graph API call failed or could not be made"""
    status_code = 502
    default_message = "Errore nella chiamata a Microsoft Graph"


def get_graph_config() -> Dict[str, Any]:
    """
    Read the Graph configuration from settings at call time.

    Raises GraphConfigurationError listing every missing variable before any
    network I/O happens.
    """
    config = dict(getattr(settings, 'MICROSOFT_GRAPH', {}) or {})
    missing = [env_name for key, env_name in REQUIRED_SETTINGS.items() if not config.get(key)]
    if missing:
        logger.error(f"Microsoft Graph configuration incomplete, missing: {', '.join(missing)}")
        raise GraphConfigurationError(missing)
    config.setdefault('TIMEOUT', 15)
    config.setdefault('CALENDAR_TIME_ZONE', 'Europe/Rome')
    return config


def is_graph_configured() -> bool:
    try:
        get_graph_config()
    except GraphConfigurationError:
        return False
    return True


def get_access_token(config: Optional[Dict[str, Any]] = None) -> str:
    """Obtain an app-only access token with the client-credentials grant"""
    config = config or get_graph_config()
    token_url = GRAPH_TOKEN_URL.format(tenant_id=config['TENANT_ID'])

    logger.info('Requesting Microsoft Graph access token')
    try:
        response = requests.post(
            token_url,
            data={
                'client_id': config['CLIENT_ID'],
                'client_secret': config['CLIENT_SECRET'],
                'scope': GRAPH_SCOPE,
                'grant_type': 'client_credentials',
            },
            timeout=config['TIMEOUT'],
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Token request to Microsoft identity platform failed: {str(e)}")
        raise GraphRequestError(
            f"Could not reach the Microsoft identity platform: {str(e)}",
            message='Impossibile contattare Microsoft 365',
        )

    if not response.ok:
        logger.error(f"Token request failed: {response.status_code} {response.reason} - {response.text[:500]}")
        raise GraphAuthenticationError(
            f"Failed to authenticate with Microsoft 365: {response.status_code} {response.reason}. "
            f"Please verify your Microsoft 365 credentials.",
            details=response.text[:1000],
        )

    try:
        access_token = response.json().get('access_token')
    except ValueError:
        access_token = None
    if not access_token:
        logger.error('Token response did not contain an access token')
        raise GraphAuthenticationError(
            'No access token received from Microsoft 365',
            message="Errore nell'ottenimento del token di accesso",
        )

    logger.info('Microsoft Graph access token obtained')
    return access_token


def hint_for_status(status_code: int, default: str) -> str:
    """Remediation hint for a failed Graph call"""
    if status_code == 403:
        return (
            "Permessi insufficienti: verificare che l'applicazione abbia i permessi Mail.Send e "
            "Calendars.ReadWrite e che l'amministratore abbia concesso il consenso"
        )
    if status_code == 401:
        return 'Credenziali non valide: verificare Tenant ID, Client ID e Client Secret'
    if status_code == 404:
        return "Casella di posta del mittente non trovata: verificare MICROSOFT_SENDER_EMAIL"
    return default


def graph_post(path: str, payload: Dict[str, Any], access_token: str,
               config: Dict[str, Any], failure_message: str) -> Dict[str, Any]:
    """POST a JSON payload to the Graph API and return the decoded response body"""
    url = f"{GRAPH_API_BASE}{path}"
    try:
        response = requests.post(
            url,
            json=payload,
            headers={
                'Authorization': f'Bearer {access_token}',
                'Content-Type': 'application/json',
            },
            timeout=config['TIMEOUT'],
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Graph request to {path} failed: {str(e)}")
        raise GraphRequestError(f"Microsoft Graph request failed: {str(e)}", message=failure_message)

    if not response.ok:
        logger.error(f"Graph call {path} failed: {response.status_code} {response.reason} - {response.text[:500]}")
        raise GraphRequestError(
            f"Microsoft Graph returned {response.status_code} {response.reason}",
            message=hint_for_status(response.status_code, failure_message),
            details=response.text[:1000],
        )

    # sendMail answers 202 with an empty body
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {}


def send_mail(to: str, subject: str, html: str, to_name: Optional[str] = None,
              from_name: str = SYSTEM_SENDER_NAME, reply_to: Optional[Dict[str, str]] = None,
              access_token: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> None:
    """
    Send one HTML email from the configured sender mailbox.

    Pass access_token/config to reuse them across several sends.
    """
    config = config or get_graph_config()
    access_token = access_token or get_access_token(config)

    message = {
        'subject': subject,
        'body': {
            'contentType': 'HTML',
            'content': html,
        },
        'toRecipients': [
            {'emailAddress': {'address': to, 'name': to_name or to}},
        ],
        'from': {
            'emailAddress': {'address': config['SENDER_EMAIL'], 'name': from_name},
        },
    }
    if reply_to:
        message['replyTo'] = [
            {'emailAddress': {'address': reply_to['email'], 'name': reply_to.get('name') or reply_to['email']}},
        ]

    logger.info(f"Sending email '{subject}' to {to}")
    graph_post(
        f"/users/{config['SENDER_EMAIL']}/sendMail",
        {'message': message},
        access_token,
        config,
        failure_message="Errore nell'invio dell'email tramite Microsoft Graph",
    )
    logger.info(f"Email '{subject}' sent to {to}")


def default_contact_info(email: Optional[str] = None) -> Dict[str, str]:
    contact = getattr(settings, 'ALLEVAPP_CONTACT', {})
    return {
        'company_name': contact.get('COMPANY_NAME', 'AllevApp'),
        'email': email or contact.get('EMAIL', ''),
        'phone': contact.get('PHONE', ''),
    }


def send_quote_request_email(to: str, supplier_name: str, quote_title: str, quote_description: str,
                             farm_name: Optional[str] = None, due_date: Optional[date] = None,
                             contact_info: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Ask a supplier for a quote; replies go to the contact email"""
    contact_info = contact_info or default_contact_info()
    subject = f"Richiesta Preventivo - {quote_title}"
    html = render_to_string('integrations/quote_request_email.html', {
        'supplier_name': supplier_name,
        'quote_title': quote_title,
        'quote_description': quote_description,
        'farm_name': farm_name or 'N/A',
        'due_date': due_date,
        'contact': contact_info,
    })

    send_mail(
        to,
        subject,
        html,
        to_name=supplier_name,
        from_name=contact_info['company_name'],
        reply_to={'email': contact_info['email'], 'name': contact_info['company_name']},
    )
    return {
        'success': True,
        'message': 'Email inviata con successo',
        'recipient': to,
        'subject': subject,
    }


def send_password_email(to: str, user_name: str, username: str, password: str, role: str) -> Dict[str, Any]:
    """Send login credentials to a newly created user"""
    subject = 'AllevApp - Le tue credenziali di accesso'
    html = render_to_string('integrations/password_email.html', {
        'user_name': user_name,
        'username': username,
        'password': password,
        'role_label': ROLE_LABELS.get(role, role),
        'generated_on': timezone.localdate(),
    })

    send_mail(to, subject, html, to_name=user_name)
    return {
        'success': True,
        'message': 'Email con credenziali inviata con successo',
        'recipient': to,
    }


def _format_event_time(value: Union[str, date, datetime]) -> str:
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.strftime('%Y-%m-%dT%H:%M:%S')
    if isinstance(value, date):
        return value.strftime('%Y-%m-%dT00:00:00')
    return value


def build_event_times(start: Union[date, datetime], end: Optional[Union[date, datetime]] = None,
                      is_all_day: bool = False):
    """
    Start/end strings for a calendar event.

    All-day events span from midnight of the start day to 23:59:59 of the end
    day (or the start day). Timed events without an end last one hour.
    """
    if is_all_day:
        start_day = start.date() if isinstance(start, datetime) else start
        end_day = end.date() if isinstance(end, datetime) else end
        end_day = end_day or start_day
        return f"{start_day.isoformat()}T00:00:00", f"{end_day.isoformat()}T23:59:59"

    if end is None:
        if not isinstance(start, datetime):
            start = datetime.combine(start, datetime.min.time())
        end = start + timedelta(hours=1)
    return _format_event_time(start), _format_event_time(end)


def create_calendar_event(subject: str, description: str, start: Union[date, datetime],
                          end: Optional[Union[date, datetime]] = None, location: Optional[str] = None,
                          attendees: Optional[List[str]] = None, is_all_day: bool = False,
                          reminder_minutes: int = 15) -> Dict[str, Any]:
    """Create an event in the sender mailbox calendar and invite the attendees"""
    config = get_graph_config()
    access_token = get_access_token(config)
    time_zone = config['CALENDAR_TIME_ZONE']
    start_str, end_str = build_event_times(start, end, is_all_day)

    event = {
        'subject': subject,
        'body': {
            'contentType': 'HTML',
            'content': description or '',
        },
        'start': {'dateTime': start_str, 'timeZone': time_zone},
        'end': {'dateTime': end_str, 'timeZone': time_zone},
        'attendees': [
            {
                'emailAddress': {'address': email, 'name': email.split('@')[0]},
                'type': 'required',
            }
            for email in (attendees or [])
        ],
        'isAllDay': is_all_day,
        'reminderMinutesBeforeStart': reminder_minutes,
        'showAs': 'busy',
        'importance': 'normal',
    }
    if location:
        event['location'] = {'displayName': location}

    logger.info(f"Creating calendar event '{subject}' on {start_str} with {len(event['attendees'])} attendee(s)")
    result = graph_post(
        f"/users/{config['SENDER_EMAIL']}/events",
        event,
        access_token,
        config,
        failure_message="Errore nella creazione dell'evento calendario",
    )
    return {
        'success': True,
        'message': 'Evento calendario creato con successo',
        'event_id': result.get('id'),
        'web_link': result.get('webLink'),
    }
