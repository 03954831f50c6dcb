# billing/admin.py
from django.contrib import admin

from .models import Collection, CollectionItem, CollectionPayment


class CollectionItemInline(admin.TabularInline):
    model = CollectionItem
    extra = 0
    can_delete = False
    fields = ("position", "shipment", "harga")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class CollectionPaymentInline(admin.TabularInline):
    model = CollectionPayment
    extra = 0
    can_delete = False
    fields = ("termin", "tanggal", "jumlah", "created_by")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Collection)
class CollectionAdmin(admin.ModelAdmin):
    list_display = ("no_penagihan", "pelanggan", "tipe_pelanggan", "cabang", "total_tagihan", "status", "overdue")
    list_filter = ("status", "overdue", "tipe_pelanggan", "cabang")
    search_fields = ("no_penagihan", "pelanggan__nama")
    readonly_fields = ("no_penagihan", "total_tagihan", "status", "tanggal_bayar", "created_by")
    inlines = [CollectionItemInline, CollectionPaymentInline]

    def has_add_permission(self, request):
        return False
