# fleet/admin.py
from django.contrib import admin

from .models import TruckQueue, Vehicle, VehicleQueue


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("no_polisi", "nama_kendaraan", "tipe", "grup", "supir", "cabang")
    list_filter = ("tipe", "cabang")
    search_fields = ("no_polisi", "nama_kendaraan")


class QueueAdmin(admin.ModelAdmin):
    list_display = ("urutan", "kendaraan", "cabang", "status", "supir", "kenek", "created_at")
    list_filter = ("status", "cabang")
    search_fields = ("kendaraan__no_polisi",)
    readonly_fields = ("urutan", "status", "active_key", "created_by", "created_at", "updated_at")
    ordering = ("cabang", "urutan")

    def has_add_permission(self, request):
        return False


admin.site.register(TruckQueue, QueueAdmin)
admin.site.register(VehicleQueue, QueueAdmin)
