from django.urls import path
from . import views

urlpatterns = [
    path('', views.orders_collection, name='orders'),
    path('<str:order_id>/', views.order_detail, name='order-detail'),
    path('<str:order_id>/pay/', views.resume_payment, name='order-resume-payment'),
    path('<str:order_id>/invoice/', views.order_invoice, name='order-invoice'),
]
