"""
apps.provider_config.views
~~~~~~~~~~~~~~~~~~~~~~~~~~
Thin DRF API views for providers and their parameters.
All business logic is delegated to
:mod:`apps.provider_config.services.provider_service`.

Endpoints
---------
GET    /providers/                                  – List providers
POST   /providers/                                  – Register provider
GET    /providers/{id-or-code}/                     – Fetch provider
GET    /providers/{id-or-code}/parameters/          – List stored parameters
POST   /providers/{id-or-code}/parameters/          – Set (upsert) parameter
GET    /providers/{id-or-code}/effective-parameters/ – Merged view for a tenant/environment
"""
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.provider_config.services import provider_service
from .serializers import (
    EffectiveParametersQuerySerializer,
    ProviderCreateSerializer,
    ProviderParameterSerializer,
    ProviderParameterWriteSerializer,
    ProviderSerializer,
)

_TAGS = ["Providers"]


class ProviderListCreateView(APIView):
    """GET /providers/ – POST /providers/"""

    @extend_schema(
        summary="List Providers",
        parameters=[OpenApiParameter("provider_type", str, required=False)],
        responses={200: ProviderSerializer(many=True)},
        tags=_TAGS,
    )
    def get(self, request: Request) -> Response:
        providers = provider_service.list_providers(
            provider_type=request.query_params.get("provider_type")
        )
        return Response(ProviderSerializer(providers, many=True).data)

    @extend_schema(
        summary="Register Provider",
        request=ProviderCreateSerializer,
        responses={
            201: ProviderSerializer,
            409: OpenApiResponse(description="A provider with that code already exists."),
        },
        tags=_TAGS,
    )
    def post(self, request: Request) -> Response:
        serializer = ProviderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        provider = provider_service.create_provider(**serializer.validated_data)
        return Response(ProviderSerializer(provider).data, status=status.HTTP_201_CREATED)


class ProviderDetailView(APIView):
    """GET /providers/{id-or-code}/"""

    @extend_schema(
        summary="Get Provider",
        responses={200: ProviderSerializer, 404: OpenApiResponse(description="Provider not found.")},
        tags=_TAGS,
    )
    def get(self, request: Request, provider_ref: str) -> Response:
        return Response(ProviderSerializer(provider_service.get_provider(provider_ref)).data)


class ProviderParameterView(APIView):
    """GET / POST /providers/{id-or-code}/parameters/"""

    @extend_schema(
        summary="List Provider Parameters",
        responses={200: ProviderParameterSerializer(many=True)},
        tags=_TAGS,
    )
    def get(self, request: Request, provider_ref: str) -> Response:
        provider = provider_service.get_provider(provider_ref)
        return Response(ProviderParameterSerializer(provider.parameters.all(), many=True).data)

    @extend_schema(
        summary="Set Provider Parameter",
        description=(
            "Creates or replaces a parameter in the given tenant/environment scope. "
            "Secret parameters carry a ``credential_vault_id`` and no value."
        ),
        request=ProviderParameterWriteSerializer,
        responses={
            200: ProviderParameterSerializer,
            404: OpenApiResponse(description="Provider or tenant not found."),
            422: OpenApiResponse(description="Invalid value/vault-reference combination."),
        },
        tags=_TAGS,
    )
    def post(self, request: Request, provider_ref: str) -> Response:
        serializer = ProviderParameterWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data

        config_value = provider_service.build_config_value(
            is_secret=vd["is_secret"],
            value=vd.get("parameter_value"),
            vault_ref=vd.get("credential_vault_id"),
        )
        parameter = provider_service.set_parameter(
            provider_id=provider_ref,
            name=vd["name"],
            config_value=config_value,
            tenant_id=vd.get("tenant_id"),
            environment=vd["environment"],
            category=vd["category"],
        )
        return Response(ProviderParameterSerializer(parameter).data)


class EffectiveParametersView(APIView):
    """GET /providers/{id-or-code}/effective-parameters/"""

    @extend_schema(
        summary="Effective Provider Parameters",
        description="Parameters merged across default, environment and tenant layers.",
        parameters=[
            OpenApiParameter("tenant_id", str, required=False),
            OpenApiParameter("environment", str, required=False),
        ],
        responses={200: OpenApiResponse(description="``{name: {value…, category, source}}``")},
        tags=_TAGS,
    )
    def get(self, request: Request, provider_ref: str) -> Response:
        serializer = EffectiveParametersQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        effective = provider_service.get_effective_parameters(
            provider_id=provider_ref,
            tenant_id=serializer.validated_data.get("tenant_id"),
            environment=serializer.validated_data["environment"],
        )
        return Response(effective)
