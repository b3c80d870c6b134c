from datetime import date, datetime, timedelta
from io import StringIO
from unittest.mock import Mock, patch

import requests
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from allevapp.core.models import User
from allevapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from allevapp.integrations.daily_summary import DailySummaryError, build_daily_summary, send_daily_summary
from allevapp.integrations.graph_service import (
    GraphAuthenticationError, GraphConfigurationError, GraphRequestError, build_event_times,
    create_calendar_event, get_access_token, send_mail
)

GRAPH_SETTINGS = {
    'TENANT_ID': 'tenant-id',
    'CLIENT_ID': 'client-id',
    'CLIENT_SECRET': 'client-secret',
    'SENDER_EMAIL': 'noreply@allevapp.com',
    'TIMEOUT': 15,
    'CALENDAR_TIME_ZONE': 'Europe/Rome',
}
MISSING_GRAPH_SETTINGS = {
    'TENANT_ID': '',
    'CLIENT_ID': '',
    'CLIENT_SECRET': '',
    'SENDER_EMAIL': '',
}


def graph_response(status_code=200, json_data=None, text=''):
    """Fake requests.Response for the Graph and token endpoints"""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = 'OK' if status_code < 400 else 'Error'
    response.text = text
    response.content = b'{}' if json_data is not None else b''
    response.json.return_value = json_data if json_data is not None else {}
    return response


def token_response():
    return graph_response(200, {'access_token': 'test-token', 'expires_in': 3599})


@patch('allevapp.integrations.graph_service.requests.post')
class GraphServiceTestCase(TestCase):
    """Token acquisition and Graph API error mapping"""

    @override_settings(MICROSOFT_GRAPH=MISSING_GRAPH_SETTINGS)
    def test_missing_configuration_fails_before_any_request(self, mock_post):
        with self.assertRaises(GraphConfigurationError) as ctx:
            send_mail('fornitore@test.com', 'Oggetto', '<p>Testo</p>')

        self.assertEqual(
            ctx.exception.missing,
            ['MICROSOFT_TENANT_ID', 'MICROSOFT_CLIENT_ID', 'MICROSOFT_CLIENT_SECRET', 'MICROSOFT_SENDER_EMAIL']
        )
        self.assertEqual(ctx.exception.status_code, 500)
        mock_post.assert_not_called()

    @override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
    def test_client_credentials_grant(self, mock_post):
        mock_post.return_value = token_response()

        self.assertEqual(get_access_token(), 'test-token')
        url = mock_post.call_args.args[0]
        data = mock_post.call_args.kwargs['data']
        self.assertEqual(url, 'https://login.microsoftonline.com/tenant-id/oauth2/v2.0/token')
        self.assertEqual(data['grant_type'], 'client_credentials')
        self.assertEqual(data['scope'], 'https://graph.microsoft.com/.default')

    @override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
    def test_rejected_credentials(self, mock_post):
        mock_post.return_value = graph_response(401, text='{"error":"invalid_client"}')
        with self.assertRaises(GraphAuthenticationError) as ctx:
            get_access_token()
        self.assertIn('invalid_client', ctx.exception.details)

    @override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
    def test_token_response_without_token(self, mock_post):
        mock_post.return_value = graph_response(200, {'token_type': 'Bearer'})
        with self.assertRaises(GraphAuthenticationError):
            get_access_token()

    @override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
    def test_send_mail_payload(self, mock_post):
        mock_post.side_effect = [token_response(), graph_response(202)]

        send_mail('fornitore@test.com', 'Richiesta', '<p>Ciao</p>', to_name='Fornitore',
                  reply_to={'email': 'acquisti@allevapp.com', 'name': 'AllevApp'})

        url = mock_post.call_args.args[0]
        message = mock_post.call_args.kwargs['json']['message']
        headers = mock_post.call_args.kwargs['headers']
        self.assertEqual(url, 'https://graph.microsoft.com/v1.0/users/noreply@allevapp.com/sendMail')
        self.assertEqual(headers['Authorization'], 'Bearer test-token')
        self.assertEqual(message['body']['contentType'], 'HTML')
        self.assertEqual(message['toRecipients'][0]['emailAddress'],
                         {'address': 'fornitore@test.com', 'name': 'Fornitore'})
        self.assertEqual(message['replyTo'][0]['emailAddress']['address'], 'acquisti@allevapp.com')

    @override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
    def test_error_hints(self, mock_post):
        for status_code, hint in ((403, 'Mail.Send'), (401, 'Client Secret'), (404, 'MICROSOFT_SENDER_EMAIL')):
            mock_post.side_effect = [token_response(), graph_response(status_code, text='error body')]
            with self.assertRaises(GraphRequestError) as ctx:
                send_mail('fornitore@test.com', 'Oggetto', '<p>Testo</p>')
            self.assertIn(hint, ctx.exception.message)
            self.assertEqual(ctx.exception.status_code, 502)
            self.assertEqual(ctx.exception.details, 'error body')

    @override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
    def test_network_failure_is_wrapped(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('connection refused')
        with self.assertRaises(GraphRequestError) as ctx:
            send_mail('fornitore@test.com', 'Oggetto', '<p>Testo</p>')
        self.assertIn('connection refused', ctx.exception.error)


class EventTimesTestCase(TestCase):
    """Start/end computation for calendar events"""

    def test_timed_event_defaults_to_one_hour(self):
        start = datetime(2026, 3, 2, 9, 30)
        self.assertEqual(build_event_times(start), ('2026-03-02T09:30:00', '2026-03-02T10:30:00'))

    def test_aware_datetimes_use_local_time(self):
        start = timezone.make_aware(datetime(2026, 7, 1, 8, 0))
        end = start + timedelta(hours=2)
        self.assertEqual(build_event_times(start, end), ('2026-07-01T08:00:00', '2026-07-01T10:00:00'))

    def test_all_day_event_spans_whole_days(self):
        self.assertEqual(
            build_event_times(date(2026, 3, 2), is_all_day=True),
            ('2026-03-02T00:00:00', '2026-03-02T23:59:59')
        )
        self.assertEqual(
            build_event_times(date(2026, 3, 2), date(2026, 3, 4), is_all_day=True),
            ('2026-03-02T00:00:00', '2026-03-04T23:59:59')
        )


@override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
@patch('allevapp.integrations.graph_service.requests.post')
class CalendarEventTestCase(TestCase):
    """Calendar events through the service and the API"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(role=User.ROLE_MANAGER)
        self.client.authenticate_user(self.user)

    def test_event_payload(self, mock_post):
        mock_post.side_effect = [token_response(), graph_response(201, {'id': 'evt-1', 'webLink': 'https://outlook/evt-1'})]

        result = create_calendar_event(
            subject='Manutenzione trattore',
            description='Tagliando annuale',
            start=datetime(2026, 4, 10, 14, 0),
            location='Cascina Nuova',
            attendees=['mario.rossi@allevapp.com'],
        )

        self.assertEqual(result['event_id'], 'evt-1')
        self.assertEqual(result['web_link'], 'https://outlook/evt-1')
        url = mock_post.call_args.args[0]
        event = mock_post.call_args.kwargs['json']
        self.assertEqual(url, 'https://graph.microsoft.com/v1.0/users/noreply@allevapp.com/events')
        self.assertEqual(event['start'], {'dateTime': '2026-04-10T14:00:00', 'timeZone': 'Europe/Rome'})
        self.assertEqual(event['end'], {'dateTime': '2026-04-10T15:00:00', 'timeZone': 'Europe/Rome'})
        self.assertEqual(event['attendees'][0]['emailAddress'],
                         {'address': 'mario.rossi@allevapp.com', 'name': 'mario.rossi'})
        self.assertEqual(event['location'], {'displayName': 'Cascina Nuova'})
        self.assertEqual(event['reminderMinutesBeforeStart'], 15)

    def test_api_adds_selected_user(self, mock_post):
        mock_post.side_effect = [token_response(), graph_response(201, {'id': 'evt-2'})]
        technician = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN, email='tecnico@allevapp.com')

        response = self.client.post('/api/v1/integrations/create-calendar-event/', {
            'subject': 'Sopralluogo',
            'start_date_time': '2026-05-05',
            'is_all_day': True,
            'selected_user': technician.id,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        event = mock_post.call_args.kwargs['json']
        self.assertTrue(event['isAllDay'])
        self.assertEqual(event['start']['dateTime'], '2026-05-05T00:00:00')
        self.assertEqual(event['end']['dateTime'], '2026-05-05T23:59:59')
        self.assertEqual([a['emailAddress']['address'] for a in event['attendees']], ['tecnico@allevapp.com'])

    def test_api_reports_graph_errors(self, mock_post):
        mock_post.side_effect = [token_response(), graph_response(403, text='Forbidden')]

        response = self.client.post('/api/v1/integrations/create-calendar-event/', {
            'subject': 'Sopralluogo',
            'start_date_time': '2026-05-05T10:00:00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(response.data['success'])
        self.assertIn('Calendars.ReadWrite', response.data['message'])

    @override_settings(MICROSOFT_GRAPH=MISSING_GRAPH_SETTINGS)
    def test_api_reports_missing_configuration(self, mock_post):
        response = self.client.post('/api/v1/integrations/create-calendar-event/', {
            'subject': 'Sopralluogo',
            'start_date_time': '2026-05-05T10:00:00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn('MICROSOFT_CLIENT_SECRET', response.data['error'])
        mock_post.assert_not_called()


@override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
class QuoteEmailAPITestCase(TestCase):
    """Standalone quote request email"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(role=User.ROLE_TECHNICIAN, email='tecnico@allevapp.com')
        self.client.authenticate_user(self.user)

    @patch('allevapp.integrations.graph_service.requests.post')
    def test_send_quote_email(self, mock_post):
        mock_post.side_effect = [token_response(), graph_response(202)]

        response = self.client.post('/api/v1/integrations/send-quote-email/', {
            'to': 'fornitore@test.com',
            'supplier_name': 'Idraulica Bresciana',
            'quote_title': 'Sostituzione pompa',
            'quote_description': 'Pompa sommersa da 3 kW',
            'farm_name': 'Cascina Nuova',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subject'], 'Richiesta Preventivo - Sostituzione pompa')
        message = mock_post.call_args.kwargs['json']['message']
        self.assertIn('Pompa sommersa da 3 kW', message['body']['content'])
        self.assertEqual(message['replyTo'][0]['emailAddress']['address'], 'tecnico@allevapp.com')

    def test_status_endpoint(self):
        response = self.client.get('/api/v1/integrations/status/')
        self.assertTrue(response.data['configured'])
        self.assertEqual(response.data['sender_email'], 'noreply@allevapp.com')

    @override_settings(MICROSOFT_GRAPH=MISSING_GRAPH_SETTINGS)
    def test_status_endpoint_lists_missing_variables(self):
        response = self.client.get('/api/v1/integrations/status/')
        self.assertFalse(response.data['configured'])
        self.assertIn('MICROSOFT_TENANT_ID', response.data['missing'])

    def test_password_email_is_admin_only(self):
        response = self.client.post('/api/v1/integrations/send-password-email/', {
            'to': 'nuovo@test.com',
            'user_name': 'Nuovo',
            'username': 'nuovo',
            'password': 'segreta',
            'role': 'technician',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


@override_settings(MICROSOFT_GRAPH=GRAPH_SETTINGS)
@patch('allevapp.integrations.graph_service.requests.post')
class DailySummaryTestCase(TestCase):
    """Daily summary content and delivery"""

    def setUp(self):
        self.today = date(2026, 3, 10)
        self.farm = TestDataFactory.create_farm()
        self.admin = TestDataFactory.create_user(role=User.ROLE_ADMIN, email='admin@allevapp.com')
        self.manager = TestDataFactory.create_user(role=User.ROLE_MANAGER, email='manager@allevapp.com')
        TestDataFactory.create_user(role=User.ROLE_TECHNICIAN, email='tecnico@allevapp.com')
        TestDataFactory.create_user(role=User.ROLE_MANAGER, email='ex@allevapp.com', is_active=False)

    def test_nothing_to_report_sends_nothing(self, mock_post):
        TestDataFactory.create_report(farm=self.farm, urgency='low')
        result = send_daily_summary(self.today)

        self.assertFalse(result['sent'])
        self.assertTrue(result['success'])
        mock_post.assert_not_called()

    def test_summary_content(self, mock_post):
        TestDataFactory.create_report(farm=self.farm, urgency='critical', title='Incendio quadro')
        TestDataFactory.create_report(farm=self.farm, urgency='high', status='in_progress')
        TestDataFactory.create_report(farm=self.farm, urgency='high', status='resolved')
        TestDataFactory.create_report(farm=self.farm, urgency='medium')
        TestDataFactory.create_equipment(farm=self.farm, next_maintenance_due=self.today - timedelta(days=1))
        TestDataFactory.create_facility(farm=self.farm, next_maintenance_due=self.today)
        TestDataFactory.create_facility(farm=self.farm, next_maintenance_due=self.today + timedelta(days=7))
        TestDataFactory.create_equipment(farm=self.farm, next_maintenance_due=self.today + timedelta(days=8))

        summary = build_daily_summary(self.today)

        self.assertEqual(len(summary['urgent_reports']), 2)
        self.assertEqual(len(summary['overdue']), 1)
        self.assertEqual(summary['overdue'][0]['days'], 1)
        self.assertEqual(len(summary['due_soon']), 2)
        self.assertEqual([item['kind'] for item in summary['due_soon']], ['facility', 'facility'])

    def test_sent_to_active_admins_and_managers(self, mock_post):
        TestDataFactory.create_report(farm=self.farm, urgency='critical')
        mock_post.side_effect = [token_response(), graph_response(202), graph_response(202)]

        result = send_daily_summary(self.today)

        self.assertTrue(result['sent'])
        self.assertEqual(result['recipients'], 2)
        self.assertEqual(result['successful_sends'], 2)
        self.assertEqual(result['summary']['urgent_reports'], 1)
        # one token request, then one sendMail per recipient
        self.assertEqual(mock_post.call_count, 3)
        recipients = [
            call.kwargs['json']['message']['toRecipients'][0]['emailAddress']['address']
            for call in mock_post.call_args_list[1:]
        ]
        self.assertEqual(recipients, ['admin@allevapp.com', 'manager@allevapp.com'])
        subject = mock_post.call_args.kwargs['json']['message']['subject']
        self.assertEqual(subject, 'AllevApp - Report Giornaliero 10/03/2026')

    def test_one_failed_recipient_does_not_stop_the_others(self, mock_post):
        TestDataFactory.create_report(farm=self.farm, urgency='high')
        mock_post.side_effect = [token_response(), graph_response(404, text='not found'), graph_response(202)]

        result = send_daily_summary(self.today)

        self.assertEqual(result['successful_sends'], 1)
        self.assertEqual(result['failed_sends'], 1)
        self.assertFalse(result['email_results'][0]['success'])

    def test_no_recipients(self, mock_post):
        User.objects.filter(role__in=[User.ROLE_ADMIN, User.ROLE_MANAGER]).update(is_active=False)
        TestDataFactory.create_report(farm=self.farm, urgency='critical')

        with self.assertRaises(DailySummaryError):
            send_daily_summary(self.today)
        mock_post.assert_not_called()

    def test_api_trigger_is_limited_to_managers(self, mock_post):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user(role=User.ROLE_TECHNICIAN))
        response = client.post('/api/v1/integrations/send-daily-summary/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        client.authenticate_user(self.manager)
        response = client.post('/api/v1/integrations/send-daily-summary/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['sent'])

    def test_management_command(self, mock_post):
        TestDataFactory.create_report(farm=self.farm, urgency='critical')
        mock_post.side_effect = [token_response(), graph_response(202), graph_response(202)]
        out = StringIO()

        call_command('send_daily_summary', '--date', '2026-03-10', stdout=out)

        self.assertIn('Daily summary sent to 2/2 recipient(s)', out.getvalue())

    def test_management_command_dry_run(self, mock_post):
        TestDataFactory.create_report(farm=self.farm, urgency='critical')
        out = StringIO()

        call_command('send_daily_summary', '--dry-run', stdout=out)

        self.assertIn('Urgent reports: 1', out.getvalue())
        mock_post.assert_not_called()

    def test_management_command_fails_on_bad_date(self, mock_post):
        with self.assertRaises(CommandError):
            call_command('send_daily_summary', '--date', '10/03/2026')
