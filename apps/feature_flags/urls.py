"""
apps.feature_flags.urls
~~~~~~~~~~~~~~~~~~~~~~~
URL routing for feature flags.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import FeatureFlagCreateView, FeatureFlagEvaluateView

urlpatterns = [
    # POST /api/v1/feature-flags/
    path("feature-flags/", FeatureFlagCreateView.as_view(), name="feature-flag-create"),
    # GET /api/v1/feature-flags/evaluate/?feature_key=…&tenant_id=…
    path(
        "feature-flags/evaluate/",
        FeatureFlagEvaluateView.as_view(),
        name="feature-flag-evaluate",
    ),
]
