"""
apps.tenants.urls
~~~~~~~~~~~~~~~~~
URL routing for the Tenants application.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import TenantDetailView, TenantListCreateView, TenantStatusView

urlpatterns = [
    # GET, POST /api/v1/tenants/
    path("tenants/", TenantListCreateView.as_view(), name="tenant-list-create"),
    # GET /api/v1/tenants/<id-or-code>/
    path("tenants/<str:tenant_ref>/", TenantDetailView.as_view(), name="tenant-detail"),
    # PATCH /api/v1/tenants/<id-or-code>/status/
    path(
        "tenants/<str:tenant_ref>/status/",
        TenantStatusView.as_view(),
        name="tenant-status",
    ),
]
