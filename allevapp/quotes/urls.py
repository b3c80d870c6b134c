from django.urls import path
from .views import quote_list_create, quote_detail, quote_request, quote_accept, quote_order_preview

urlpatterns = [
    # Quote endpoints
    path('quotes/', quote_list_create, name='quote-list-create'),
    path('quotes/request/', quote_request, name='quote-request'),
    path('quotes/<int:pk>/', quote_detail, name='quote-detail'),
    path('quotes/<int:pk>/accept/', quote_accept, name='quote-accept'),
    path('quotes/<int:pk>/order-preview/', quote_order_preview, name='quote-order-preview'),
]
