"""
URL configuration for payment endpoints.
"""
from django.urls import path

from .views import CreateOrderView, VerifyPaymentView

urlpatterns = [
    path(
        'order/',
        CreateOrderView.as_view(),
        name='payment-create-order'
    ),
    path(
        'verify/',
        VerifyPaymentView.as_view(),
        name='payment-verify'
    ),
]
