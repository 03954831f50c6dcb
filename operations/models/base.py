from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class WorkflowDocument(TimeStampedModel):
    """Dasar dokumen operasional (pickup, muat, lansir, retur)."""

    cabang = models.ForeignKey("core.Branch", on_delete=models.PROTECT, related_name="+")
    keterangan = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")

    CODE_FIELD = None

    class Meta:
        abstract = True
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return getattr(self, self.CODE_FIELD) or f"{self.__class__.__name__}#{self.pk}"

    def shipment_list(self):
        """STT sesuai urutan input."""
        return [item.shipment for item in self.items.select_related("shipment").order_by("position")]


class DocumentItem(models.Model):
    """Baris STT di dokumen; `position` menjaga urutan input."""

    shipment = models.ForeignKey("shipments.Shipment", on_delete=models.PROTECT, related_name="+")
    position = models.PositiveIntegerField(default=0)

    class Meta:
        abstract = True
        ordering = ["position", "id"]
