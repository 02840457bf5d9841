# products/urls.py

"""
PRODUCTS URLS

Registers product routes directly under /api/products/.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from products.views import ProductViewSet

# SimpleRouter: a DefaultRouter root view would shadow the list route at "".
router = SimpleRouter()
router.register(r"", ProductViewSet, basename="products")

urlpatterns = [
    path("", include(router.urls)),
]
