"""
apps.feature_flags.views
~~~~~~~~~~~~~~~~~~~~~~~~
Thin DRF API views for feature flags.
All business logic is delegated to
:mod:`apps.feature_flags.services.flag_service`.

Endpoints
---------
POST   /feature-flags/            – Create flag
GET    /feature-flags/evaluate/   – Evaluate flag for a tenant/environment/subject
"""
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.feature_flags.services import flag_service
from .serializers import (
    FeatureFlagCreateSerializer,
    FeatureFlagSerializer,
    FlagEvaluateQuerySerializer,
    FlagEvaluationSerializer,
)


class FeatureFlagCreateView(APIView):
    """POST /feature-flags/"""

    @extend_schema(
        summary="Create Feature Flag",
        request=FeatureFlagCreateSerializer,
        responses={
            201: FeatureFlagSerializer,
            404: OpenApiResponse(description="Tenant not found."),
            409: OpenApiResponse(description="Flag already exists in that scope."),
        },
        tags=["Feature Flags"],
    )
    def post(self, request: Request) -> Response:
        serializer = FeatureFlagCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        flag = flag_service.create_flag(**serializer.validated_data)
        return Response(FeatureFlagSerializer(flag).data, status=status.HTTP_201_CREATED)


class FeatureFlagEvaluateView(APIView):
    """GET /feature-flags/evaluate/"""

    @extend_schema(
        summary="Evaluate Feature Flag",
        parameters=[
            OpenApiParameter("feature_key", str, required=True),
            OpenApiParameter("tenant_id", str, required=False),
            OpenApiParameter("environment", str, required=False),
            OpenApiParameter("subject_key", str, required=False),
        ],
        responses={200: FlagEvaluationSerializer},
        tags=["Feature Flags"],
    )
    def get(self, request: Request) -> Response:
        serializer = FlagEvaluateQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        evaluation = flag_service.evaluate_flag(
            feature_key=vd["feature_key"],
            tenant_id=vd.get("tenant_id"),
            environment=vd["environment"],
            subject_key=vd.get("subject_key") or None,
        )
        return Response(FlagEvaluationSerializer(evaluation).data)
