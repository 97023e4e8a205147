from django.urls import path
from . import views

urlpatterns = [
    path('', views.wishlist_collection, name='wishlist'),
    path('<str:product_id>/', views.wishlist_item, name='wishlist-item'),
]
