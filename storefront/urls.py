from django.urls import path

from .account_views import AccountProxyView
from .catalog_views import CatalogProxyView

urlpatterns = [
    path('api-proxy.php', CatalogProxyView.as_view(), name='catalog-proxy'),
    path('auth-proxy.php', AccountProxyView.as_view(), name='account-proxy'),
]
