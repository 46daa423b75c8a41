"""
apps.process_mappings.urls
~~~~~~~~~~~~~~~~~~~~~~~~~~
URL routing for API→process mappings.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import (
    MappingByProcessView,
    MappingByTenantView,
    MappingCacheInvalidateView,
    MappingCreateView,
    MappingDetailView,
    MappingFilterView,
    MappingResolveView,
    VanillaMappingListView,
)

urlpatterns = [
    # POST /api/v1/api-process-mappings/
    path("api-process-mappings/", MappingCreateView.as_view(), name="mapping-create"),
    # POST /api/v1/api-process-mappings/filter/
    path("api-process-mappings/filter/", MappingFilterView.as_view(), name="mapping-filter"),
    # GET /api/v1/api-process-mappings/resolve/?operation_id=…
    path("api-process-mappings/resolve/", MappingResolveView.as_view(), name="mapping-resolve"),
    # GET /api/v1/api-process-mappings/vanilla/
    path("api-process-mappings/vanilla/", VanillaMappingListView.as_view(), name="mapping-vanilla"),
    # POST /api/v1/api-process-mappings/cache/invalidate/
    path(
        "api-process-mappings/cache/invalidate/",
        MappingCacheInvalidateView.as_view(),
        name="mapping-cache-invalidate",
    ),
    # GET /api/v1/api-process-mappings/tenants/<tenant_id>/mappings/
    path(
        "api-process-mappings/tenants/<uuid:tenant_id>/mappings/",
        MappingByTenantView.as_view(),
        name="mapping-by-tenant",
    ),
    # GET /api/v1/api-process-mappings/processes/<process_id>/
    path(
        "api-process-mappings/processes/<str:process_id>/",
        MappingByProcessView.as_view(),
        name="mapping-by-process",
    ),
    # GET, PUT, DELETE /api/v1/api-process-mappings/<id>/
    path("api-process-mappings/<uuid:pk>/", MappingDetailView.as_view(), name="mapping-detail"),
]
