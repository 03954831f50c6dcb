# operations/admin.py
from django.contrib import admin

from .models import (
    Delivery, DeliveryItem, Loading, LoadingItem, Pickup, PickupItem, PickupRequest, Return, ReturnItem,
)


class ServiceOnlyAdmin(admin.ModelAdmin):
    """Dokumen dibuat lewat operations.services, bukan form admin."""

    def has_add_permission(self, request):
        return False


def _items_inline(item_model):
    return type(
        f"{item_model.__name__}Inline",
        (admin.TabularInline,),
        {
            "model": item_model,
            "extra": 0,
            "can_delete": False,
            "fields": ("position", "shipment"),
            "readonly_fields": ("position", "shipment"),
            "has_add_permission": lambda self, request, obj=None: False,
        },
    )


@admin.register(PickupRequest)
class PickupRequestAdmin(ServiceOnlyAdmin):
    list_display = ("no_request", "tanggal", "pengirim", "tujuan", "jumlah_colly", "status", "pickup")
    list_filter = ("status", "cabang")
    search_fields = ("no_request", "pengirim__nama")
    readonly_fields = ("no_request", "status", "pickup", "created_by")


@admin.register(Pickup)
class PickupAdmin(ServiceOnlyAdmin):
    list_display = ("no_pengambilan", "tanggal", "pengirim", "kendaraan", "supir", "status")
    list_filter = ("status", "cabang")
    search_fields = ("no_pengambilan", "pengirim__nama")
    readonly_fields = ("no_pengambilan", "status", "waktu_berangkat", "waktu_pulang", "created_by")
    inlines = [_items_inline(PickupItem)]


@admin.register(Loading)
class LoadingAdmin(ServiceOnlyAdmin):
    list_display = ("id_muat", "cabang", "cabang_bongkar", "antrian_truck", "status", "waktu_berangkat")
    list_filter = ("status", "cabang", "cabang_bongkar")
    search_fields = ("id_muat",)
    readonly_fields = ("id_muat", "status", "antrian_truck", "waktu_berangkat", "waktu_sampai", "created_by")
    inlines = [_items_inline(LoadingItem)]


@admin.register(Delivery)
class DeliveryAdmin(ServiceOnlyAdmin):
    list_display = ("id_lansir", "cabang", "antrian_kendaraan", "status", "nama_penerima", "berangkat")
    list_filter = ("status", "cabang")
    search_fields = ("id_lansir", "nama_penerima")
    readonly_fields = ("id_lansir", "status", "antrian_kendaraan", "berangkat", "sampai", "created_by")
    inlines = [_items_inline(DeliveryItem)]


@admin.register(Return)
class ReturnAdmin(ServiceOnlyAdmin):
    list_display = ("id_retur", "cabang", "tanggal_kirim", "tanggal_sampai", "status")
    list_filter = ("status", "cabang")
    search_fields = ("id_retur", "tanda_terima")
    readonly_fields = ("id_retur", "status", "tanggal_sampai", "created_by")
    inlines = [_items_inline(ReturnItem)]
