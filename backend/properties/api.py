from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import Property
from .serializers import PropertySearchSerializer, PropertySerializer
from .services.search import featured_properties, search_properties

DEFAULT_FEATURED_LIMIT = 3


class PropertyViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Property.objects.all().order_by("id")
    serializer_class = PropertySerializer
    permission_classes = [permissions.AllowAny]
    filterset_fields = ["area", "featured", "is_new"]
    search_fields = ["title", "location", "description"]
    ordering_fields = ["price", "rating", "bedrooms"]

    @action(detail=False, methods=["get"])
    def featured(self, request):
        try:
            limit = int(request.query_params.get("limit", DEFAULT_FEATURED_LIMIT))
        except (TypeError, ValueError):
            return Response({"limit": "Must be an integer."}, status=status.HTTP_400_BAD_REQUEST)
        limit = max(limit, 0)
        serializer = self.get_serializer(featured_properties(limit), many=True)
        return Response(serializer.data)

    @action(detail=False, methods=["post"])
    def search(self, request):
        filters = PropertySearchSerializer(data=request.data)
        filters.is_valid(raise_exception=True)
        results = search_properties(filters.validated_data)
        serializer = self.get_serializer(results, many=True)
        return Response(serializer.data)
