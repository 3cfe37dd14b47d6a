from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Django admin (customer profiles and orders)
    path('admin/', admin.site.urls),

    # Catalog and account proxies
    path('', include('storefront.urls')),
]
