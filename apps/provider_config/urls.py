"""
apps.provider_config.urls
~~~~~~~~~~~~~~~~~~~~~~~~~
URL routing for providers and provider parameters.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import (
    EffectiveParametersView,
    ProviderDetailView,
    ProviderListCreateView,
    ProviderParameterView,
)

urlpatterns = [
    # GET, POST /api/v1/providers/
    path("providers/", ProviderListCreateView.as_view(), name="provider-list-create"),
    # GET /api/v1/providers/<id-or-code>/
    path("providers/<str:provider_ref>/", ProviderDetailView.as_view(), name="provider-detail"),
    # GET, POST /api/v1/providers/<id-or-code>/parameters/
    path(
        "providers/<str:provider_ref>/parameters/",
        ProviderParameterView.as_view(),
        name="provider-parameters",
    ),
    # GET /api/v1/providers/<id-or-code>/effective-parameters/?tenant_id=…&environment=…
    path(
        "providers/<str:provider_ref>/effective-parameters/",
        EffectiveParametersView.as_view(),
        name="provider-effective-parameters",
    ),
]
