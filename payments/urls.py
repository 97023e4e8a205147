from django.urls import path
from . import views

urlpatterns = [
    path('callback/', views.paystack_callback, name='paystack-callback'),
    path('webhook/', views.paystack_webhook, name='paystack-webhook'),
]
