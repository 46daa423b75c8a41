"""
apps.channel_config.views
~~~~~~~~~~~~~~~~~~~~~~~~~
Thin DRF API views for channel configurations and their parameters.
All business logic is delegated to
:mod:`apps.channel_config.services.channel_service`.

Endpoints
---------
GET    /channel-configs/?tenant_id=…                – List a tenant's channels
POST   /channel-configs/                            – Register channel
GET    /channel-configs/{id}/                       – Fetch channel
GET    /channel-configs/{id}/parameters/            – List active parameters
POST   /channel-configs/{id}/parameters/            – Set (upsert) parameter
DELETE /channel-configs/{id}/parameters/{key}/      – Soft-delete parameter
GET    /channel-parameters/?tenant_id=…&channel_code=… – Tenant + channel lookup
"""
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.channel_config.services import channel_service
from .serializers import (
    ChannelConfigCreateSerializer,
    ChannelConfigSerializer,
    ChannelParameterSerializer,
    ChannelParametersQuerySerializer,
    ChannelParameterWriteSerializer,
)

_TAGS = ["Channel Configuration"]


class ChannelConfigListCreateView(APIView):
    """GET /channel-configs/?tenant_id=… – POST /channel-configs/"""

    @extend_schema(
        summary="List Channel Configurations",
        parameters=[
            OpenApiParameter("tenant_id", str, required=True, description="Tenant UUID or code."),
            OpenApiParameter("active_only", bool, required=False),
        ],
        responses={200: ChannelConfigSerializer(many=True)},
        tags=_TAGS,
    )
    def get(self, request: Request) -> Response:
        channels = channel_service.list_channel_configs(
            tenant_id=request.query_params.get("tenant_id"),
            active_only=request.query_params.get("active_only", "").lower() == "true",
        )
        return Response(ChannelConfigSerializer(channels, many=True).data)

    @extend_schema(
        summary="Register Channel Configuration",
        request=ChannelConfigCreateSerializer,
        responses={
            201: ChannelConfigSerializer,
            404: OpenApiResponse(description="Tenant not found."),
            409: OpenApiResponse(description="The tenant already configures that channel."),
        },
        tags=_TAGS,
    )
    def post(self, request: Request) -> Response:
        serializer = ChannelConfigCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        channel = channel_service.create_channel_config(**serializer.validated_data)
        return Response(ChannelConfigSerializer(channel).data, status=status.HTTP_201_CREATED)


class ChannelConfigDetailView(APIView):
    """GET /channel-configs/{id}/"""

    @extend_schema(
        summary="Get Channel Configuration",
        responses={200: ChannelConfigSerializer, 404: OpenApiResponse(description="Not found.")},
        tags=_TAGS,
    )
    def get(self, request: Request, config_id) -> Response:
        return Response(ChannelConfigSerializer(channel_service.get_channel_config(config_id)).data)


class ChannelParameterView(APIView):
    """GET / POST /channel-configs/{id}/parameters/"""

    @extend_schema(
        summary="List Channel Parameters",
        responses={200: ChannelParameterSerializer(many=True)},
        tags=_TAGS,
    )
    def get(self, request: Request, config_id) -> Response:
        parameters = channel_service.list_parameters(config_id=config_id)
        return Response(ChannelParameterSerializer(parameters, many=True).data)

    @extend_schema(
        summary="Set Channel Parameter",
        description=(
            "Creates or replaces a parameter.  The value and default must parse as "
            "``parameter_type`` and match ``validation_regex`` when one is given."
        ),
        request=ChannelParameterWriteSerializer,
        responses={
            200: ChannelParameterSerializer,
            404: OpenApiResponse(description="Channel configuration not found."),
            422: OpenApiResponse(description="Value does not fit its type or pattern."),
        },
        tags=_TAGS,
    )
    def post(self, request: Request, config_id) -> Response:
        serializer = ChannelParameterWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        parameter = channel_service.set_parameter(config_id=config_id, **serializer.validated_data)
        return Response(ChannelParameterSerializer(parameter).data)


class ChannelParameterDeleteView(APIView):
    """DELETE /channel-configs/{id}/parameters/{key}/"""

    @extend_schema(
        summary="Delete Channel Parameter",
        responses={204: None, 404: OpenApiResponse(description="Parameter not found.")},
        tags=_TAGS,
    )
    def delete(self, request: Request, config_id, parameter_key: str) -> Response:
        channel_service.delete_parameter(config_id=config_id, parameter_key=parameter_key)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ChannelParametersLookupView(APIView):
    """GET /channel-parameters/?tenant_id=…&channel_code=…"""

    @extend_schema(
        summary="Channel Parameters for a Tenant",
        description="Active parameters of one tenant's channel.  Sensitive values are masked.",
        parameters=[
            OpenApiParameter("tenant_id", str, required=True, description="Tenant UUID or code."),
            OpenApiParameter("channel_code", str, required=True),
            OpenApiParameter("category", str, required=False),
        ],
        responses={
            200: OpenApiResponse(description="``{parameter_key: {value, parameter_type, …, source}}``"),
            404: OpenApiResponse(description="Channel not configured for that tenant."),
        },
        tags=_TAGS,
    )
    def get(self, request: Request) -> Response:
        serializer = ChannelParametersQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        parameters = channel_service.get_channel_parameters(
            tenant_id=vd["tenant_id"],
            channel_code=vd["channel_code"],
            category=vd.get("category") or None,
        )
        return Response(parameters)
