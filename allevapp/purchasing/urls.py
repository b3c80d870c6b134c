from django.urls import path
from .views import order_list, order_detail, order_sequence_list

urlpatterns = [
    # Order confirmation endpoints
    path('orders/', order_list, name='order-list'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('order-sequences/', order_sequence_list, name='order-sequence-list'),
]
