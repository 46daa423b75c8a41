"""
apps.process_mappings.views
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Thin DRF API views for API→process mappings.
All business logic is delegated to
:mod:`apps.process_mappings.services.mapping_service`.

Endpoints
---------
POST   /api-process-mappings/                         – Create mapping
GET    /api-process-mappings/{id}/                    – Fetch mapping
PUT    /api-process-mappings/{id}/                    – Partial update (optimistic lock)
DELETE /api-process-mappings/{id}/                    – Delete mapping
POST   /api-process-mappings/filter/                  – Filter + paginate
GET    /api-process-mappings/resolve/                 – Resolve best mapping
GET    /api-process-mappings/tenants/{tenant_id}/mappings/ – Tenant's mappings
GET    /api-process-mappings/vanilla/                 – Active vanilla mappings
GET    /api-process-mappings/processes/{process_id}/  – Mappings targeting a process
POST   /api-process-mappings/cache/invalidate/        – Invalidate resolution cache
"""
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.process_mappings.services import mapping_service
from common.exceptions import NotFoundError
from .serializers import (
    ApiProcessMappingSerializer,
    ApiProcessMappingWriteSerializer,
    CacheInvalidateSerializer,
    MappingFilterSerializer,
    MappingPageSerializer,
    ResolveQuerySerializer,
)

_TAGS = ["API Process Mappings"]


def _split_write_payload(validated_data: dict) -> tuple[dict, int | None, str | None]:
    data = dict(validated_data)
    expected_version = data.pop("version", None)
    acting_user = data.pop("acting_user", None) or None
    return data, expected_version, acting_user


class MappingCreateView(APIView):
    """POST /api-process-mappings/"""

    @extend_schema(
        summary="Create API Process Mapping",
        description=(
            "Creates a mapping between an API operation and a process plugin. "
            "Omit tenant_id for a vanilla mapping shared by every tenant."
        ),
        request=ApiProcessMappingWriteSerializer,
        responses={
            201: ApiProcessMappingSerializer,
            404: OpenApiResponse(description="Referenced tenant does not exist."),
            422: OpenApiResponse(description="Inverted effective window or missing fields."),
        },
        tags=_TAGS,
    )
    def post(self, request: Request) -> Response:
        serializer = ApiProcessMappingWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data, _, acting_user = _split_write_payload(serializer.validated_data)
        mapping = mapping_service.create_mapping(data=data, acting_user=acting_user)
        return Response(
            ApiProcessMappingSerializer(mapping).data,
            status=status.HTTP_201_CREATED,
        )


class MappingDetailView(APIView):
    """GET / PUT / DELETE /api-process-mappings/{id}/"""

    @extend_schema(
        summary="Get API Process Mapping",
        responses={200: ApiProcessMappingSerializer, 404: OpenApiResponse(description="Not found.")},
        tags=_TAGS,
    )
    def get(self, request: Request, pk) -> Response:
        return Response(ApiProcessMappingSerializer(mapping_service.get_mapping(pk)).data)

    @extend_schema(
        summary="Update API Process Mapping",
        description=(
            "Partial update.  Send the last-read ``version`` to have the write "
            "rejected with 409 if someone else changed the mapping meanwhile."
        ),
        request=ApiProcessMappingWriteSerializer,
        responses={
            200: ApiProcessMappingSerializer,
            404: OpenApiResponse(description="Not found."),
            409: OpenApiResponse(description="Version conflict."),
        },
        tags=_TAGS,
    )
    def put(self, request: Request, pk) -> Response:
        serializer = ApiProcessMappingWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data, expected_version, acting_user = _split_write_payload(serializer.validated_data)
        mapping = mapping_service.update_mapping(
            pk,
            data=data,
            expected_version=expected_version,
            acting_user=acting_user,
        )
        return Response(ApiProcessMappingSerializer(mapping).data)

    @extend_schema(
        summary="Delete API Process Mapping",
        responses={204: None, 404: OpenApiResponse(description="Not found.")},
        tags=_TAGS,
    )
    def delete(self, request: Request, pk) -> Response:
        mapping_service.delete_mapping(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MappingFilterView(APIView):
    """POST /api-process-mappings/filter/"""

    @extend_schema(
        summary="Filter API Process Mappings",
        request=MappingFilterSerializer,
        responses={200: MappingPageSerializer},
        tags=_TAGS,
    )
    def post(self, request: Request) -> Response:
        serializer = MappingFilterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        filters = dict(serializer.validated_data)
        page = filters.pop("page", 1)
        page_size = filters.pop("page_size", None)
        result = mapping_service.filter_mappings(
            filters=filters,
            page=page,
            page_size=page_size,
            serializer_class=ApiProcessMappingSerializer,
        )
        return Response(result)


class MappingResolveView(APIView):
    """GET /api-process-mappings/resolve/"""

    @extend_schema(
        summary="Resolve API Process Mapping",
        description=(
            "Returns the single most specific, currently effective mapping for "
            "the operation in the given tenant/product/channel context, falling "
            "back to vanilla mappings."
        ),
        parameters=[
            OpenApiParameter("operation_id", str, required=True),
            OpenApiParameter("tenant_id", str, required=False),
            OpenApiParameter("product_id", str, required=False),
            OpenApiParameter("channel_type", str, required=False),
        ],
        responses={
            200: ApiProcessMappingSerializer,
            400: OpenApiResponse(description="operation_id missing or malformed ids."),
            404: OpenApiResponse(description="No mapping applies."),
        },
        tags=_TAGS,
    )
    def get(self, request: Request) -> Response:
        serializer = ResolveQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data

        resolution = mapping_service.resolve_mapping(
            operation_id=vd["operation_id"],
            tenant_id=vd.get("tenant_id"),
            product_id=vd.get("product_id"),
            channel_type=vd.get("channel_type"),
        )
        if not resolution.found:
            raise NotFoundError(
                f"No process mapping applies to operation '{vd['operation_id']}'.",
                code="mapping_not_found",
            )
        return Response(ApiProcessMappingSerializer(resolution.mapping).data)


class MappingByTenantView(APIView):
    """GET /api-process-mappings/tenants/{tenant_id}/mappings/"""

    @extend_schema(
        summary="List Tenant Mappings",
        responses={200: ApiProcessMappingSerializer(many=True)},
        tags=_TAGS,
    )
    def get(self, request: Request, tenant_id) -> Response:
        mappings = mapping_service.list_by_tenant(tenant_id)
        return Response(ApiProcessMappingSerializer(mappings, many=True).data)


class VanillaMappingListView(APIView):
    """GET /api-process-mappings/vanilla/"""

    @extend_schema(
        summary="List Vanilla Mappings",
        responses={200: ApiProcessMappingSerializer(many=True)},
        tags=_TAGS,
    )
    def get(self, request: Request) -> Response:
        mappings = mapping_service.list_vanilla_mappings()
        return Response(ApiProcessMappingSerializer(mappings, many=True).data)


class MappingByProcessView(APIView):
    """GET /api-process-mappings/processes/{process_id}/"""

    @extend_schema(
        summary="List Mappings For Process",
        responses={200: ApiProcessMappingSerializer(many=True)},
        tags=_TAGS,
    )
    def get(self, request: Request, process_id: str) -> Response:
        mappings = mapping_service.list_by_process(process_id)
        return Response(ApiProcessMappingSerializer(mappings, many=True).data)


class MappingCacheInvalidateView(APIView):
    """POST /api-process-mappings/cache/invalidate/"""

    @extend_schema(
        summary="Invalidate Resolution Cache",
        description="Drops cached resolutions for one tenant, or all of them when tenant_id is omitted.",
        request=CacheInvalidateSerializer,
        responses={204: None},
        tags=_TAGS,
    )
    def post(self, request: Request) -> Response:
        serializer = CacheInvalidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        mapping_service.invalidate_cache(serializer.validated_data.get("tenant_id"))
        return Response(status=status.HTTP_204_NO_CONTENT)
