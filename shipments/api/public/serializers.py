from rest_framework import serializers

from shipments.models import Shipment, ShipmentTracking

# fallback note biar timeline gak kosong
PUBLIC_STATUS_NOTE = {
    "PENDING": "Kiriman diterima di cabang asal",
    "MUAT": "Kiriman dimuat ke truck",
    "TRANSIT": "Dalam perjalanan ke cabang tujuan",
    "LANSIR": "Sedang diantar",
    "TERKIRIM": "Kiriman diterima",
    "RETURN": "Kiriman diretur",
}


class PublicTrackingEventSerializer(serializers.ModelSerializer):
    status_label = serializers.CharField(source="get_status_display", read_only=True)
    note = serializers.SerializerMethodField()

    class Meta:
        model = ShipmentTracking
        fields = ["event_time", "status", "status_label", "location", "note"]

    def get_note(self, obj):
        if obj.notes and obj.notes.strip():
            return obj.notes
        return PUBLIC_STATUS_NOTE.get(obj.status, "")


class PublicShipmentTrackingSerializer(serializers.ModelSerializer):
    status_label = serializers.CharField(source="get_status_display", read_only=True)
    origin = serializers.CharField(source="cabang_asal.nama_cabang", read_only=True)
    destination = serializers.CharField(source="cabang_tujuan.nama_cabang", read_only=True)
    timeline = serializers.SerializerMethodField()

    class Meta:
        model = Shipment
        fields = [
            "no_stt",
            "status",
            "status_label",
            "origin",
            "destination",
            "jumlah_colly",
            "berat",
            "timeline",
        ]

    def get_timeline(self, obj):
        qs = obj.trackings.order_by("event_time", "id")
        return PublicTrackingEventSerializer(qs, many=True, context=self.context).data
