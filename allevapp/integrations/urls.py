from django.urls import path
from .views import (
    send_quote_email, send_password_email_view, send_daily_summary_view,
    create_calendar_event_view, integration_status
)

urlpatterns = [
    # Microsoft 365 endpoints
    path('integrations/send-quote-email/', send_quote_email, name='send-quote-email'),
    path('integrations/send-password-email/', send_password_email_view, name='send-password-email'),
    path('integrations/send-daily-summary/', send_daily_summary_view, name='send-daily-summary'),
    path('integrations/create-calendar-event/', create_calendar_event_view, name='create-calendar-event'),
    path('integrations/status/', integration_status, name='integration-status'),
]
