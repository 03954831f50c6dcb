# shipments/admin.py
from django.contrib import admin

from .models import Shipment, ShipmentTracking


class ShipmentTrackingInline(admin.TabularInline):
    model = ShipmentTracking
    extra = 0
    can_delete = False
    fields = ("event_time", "status", "location", "notes", "source_ref", "user")
    readonly_fields = fields
    ordering = ("event_time", "id")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = (
        "no_stt", "status", "cabang_asal", "cabang_tujuan",
        "pengirim", "penerima", "berat", "harga", "payment_type", "created_at",
    )
    list_filter = ("status", "payment_type", "cabang_asal", "cabang_tujuan", "created_at")
    search_fields = ("no_stt", "nama_barang", "pengirim__nama", "penerima__nama")
    autocomplete_fields = ("cabang_asal", "cabang_tujuan", "pengirim", "penerima", "cabang")
    inlines = [ShipmentTrackingInline]
    # status hanya berubah lewat dokumen operasional
    readonly_fields = ("no_stt", "status", "harga", "created_by", "created_at", "updated_at")

    # STT dibuat lewat shipments.services.intake (penomoran + tracking awal)
    def has_add_permission(self, request):
        return False
