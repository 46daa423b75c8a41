"""
apps.tenants.views
~~~~~~~~~~~~~~~~~~
Thin DRF API views for the Tenants application.
All business logic is delegated to
:mod:`apps.tenants.services.tenant_service`.

Endpoints
---------
GET    /tenants/                 – List tenants (optional ``?status=``)
POST   /tenants/                 – Create tenant
GET    /tenants/{id-or-code}/    – Fetch one tenant
PATCH  /tenants/{id-or-code}/status/ – Change operational status
"""
from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.tenants import services
from .serializers import TenantCreateSerializer, TenantSerializer, TenantStatusSerializer


class TenantListCreateView(APIView):
    """GET /tenants/ – POST /tenants/"""

    @extend_schema(
        summary="List Tenants",
        responses={200: TenantSerializer(many=True)},
        tags=["Tenants"],
    )
    def get(self, request: Request) -> Response:
        tenants = services.list_tenants(status=request.query_params.get("status"))
        return Response(TenantSerializer(tenants, many=True).data)

    @extend_schema(
        summary="Create Tenant",
        request=TenantCreateSerializer,
        responses={
            201: TenantSerializer,
            400: OpenApiResponse(description="Validation error – name missing or blank."),
            409: OpenApiResponse(description="A tenant with that name or code already exists."),
        },
        tags=["Tenants"],
    )
    def post(self, request: Request) -> Response:
        serializer = TenantCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tenant = services.create_tenant(**serializer.validated_data)
        return Response(TenantSerializer(tenant).data, status=status.HTTP_201_CREATED)


class TenantDetailView(APIView):
    """GET /tenants/{id-or-code}/"""

    @extend_schema(
        summary="Get Tenant",
        responses={200: TenantSerializer, 404: OpenApiResponse(description="Tenant not found.")},
        tags=["Tenants"],
    )
    def get(self, request: Request, tenant_ref: str) -> Response:
        return Response(TenantSerializer(services.get_tenant(tenant_ref)).data)


class TenantStatusView(APIView):
    """PATCH /tenants/{id-or-code}/status/"""

    @extend_schema(
        summary="Change Tenant Status",
        request=TenantStatusSerializer,
        responses={200: TenantSerializer, 404: OpenApiResponse(description="Tenant not found.")},
        tags=["Tenants"],
    )
    def patch(self, request: Request, tenant_ref: str) -> Response:
        serializer = TenantStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tenant = services.update_tenant_status(
            tenant_ref, status=serializer.validated_data["status"]
        )
        return Response(TenantSerializer(tenant).data)
