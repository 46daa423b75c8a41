"""
apps.channel_config.urls
~~~~~~~~~~~~~~~~~~~~~~~~
URL routing for channel configurations and channel parameters.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import (
    ChannelConfigDetailView,
    ChannelConfigListCreateView,
    ChannelParameterDeleteView,
    ChannelParameterView,
    ChannelParametersLookupView,
)

urlpatterns = [
    # GET ?tenant_id=…, POST /api/v1/channel-configs/
    path("channel-configs/", ChannelConfigListCreateView.as_view(), name="channel-config-list-create"),
    # GET /api/v1/channel-configs/<uuid>/
    path(
        "channel-configs/<uuid:config_id>/",
        ChannelConfigDetailView.as_view(),
        name="channel-config-detail",
    ),
    # GET, POST /api/v1/channel-configs/<uuid>/parameters/
    path(
        "channel-configs/<uuid:config_id>/parameters/",
        ChannelParameterView.as_view(),
        name="channel-config-parameters",
    ),
    # DELETE /api/v1/channel-configs/<uuid>/parameters/<key>/
    path(
        "channel-configs/<uuid:config_id>/parameters/<str:parameter_key>/",
        ChannelParameterDeleteView.as_view(),
        name="channel-config-parameter-delete",
    ),
    # GET /api/v1/channel-parameters/?tenant_id=…&channel_code=…&category=…
    path("channel-parameters/", ChannelParametersLookupView.as_view(), name="channel-parameters"),
]
