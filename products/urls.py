from django.urls import path
from . import views

urlpatterns = [
    path('', views.product_list, name='product-list'),
    path('process/', views.process_product, name='process-product'),
    path('<slug:slug>/', views.product_detail, name='product-detail'),
]
