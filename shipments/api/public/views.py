from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from shipments.api.public.serializers import PublicShipmentTrackingSerializer
from shipments.api.public.throttles import PublicTrackThrottle
from shipments.services.intake import track


class PublicTrackShipmentView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [PublicTrackThrottle]

    def get(self, request, no_stt: str):
        # NotFound diterjemahkan jadi 404 oleh domain_exception_handler
        shipment = track(no_stt.strip().upper())
        serializer = PublicShipmentTrackingSerializer(shipment, context={"request": request})
        return Response(serializer.data)
