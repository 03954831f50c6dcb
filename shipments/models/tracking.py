# shipments/models/tracking.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from .shipments import ShipmentStatus


class ShipmentTracking(models.Model):
    """Riwayat status STT. Append-only: satu baris per perubahan status."""

    shipment = models.ForeignKey("shipments.Shipment", on_delete=models.CASCADE, related_name="trackings")
    status = models.CharField(max_length=10, choices=ShipmentStatus.choices, db_index=True)
    location = models.CharField(max_length=120)
    notes = models.CharField(max_length=255, blank=True, default="")
    source_ref = models.CharField(max_length=30, blank=True, default="")  # nomor dokumen pemicu

    event_time = models.DateTimeField(default=timezone.now, db_index=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL)

    class Meta:
        db_table = "shipments_stt_tracking"
        ordering = ["event_time", "id"]
        indexes = [
            models.Index(fields=["shipment", "event_time"]),
        ]

    def __str__(self):
        return f"{self.shipment} {self.status} @ {self.event_time}"
