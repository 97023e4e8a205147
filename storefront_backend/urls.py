from django.urls import include, path

from orders.views import admin_notifications

urlpatterns = [
    path('api/orders/', include('orders.urls')),
    path('api/payments/', include('payments.urls')),
    path('api/products/', include('products.urls')),
    path('api/user/wishlist/', include('wishlist.urls')),
    path('api/admin/notifications/', admin_notifications, name='admin-notifications'),
]
