# accounting/admin.py
from django.contrib import admin

from .models import BankStatement, BranchCash, HeadquarterCash, LedgerHead

# debet/kredit/saldo tidak pernah diedit; koreksi lewat transaksi baru
LEDGER_READONLY = ("debet", "kredit", "saldo", "urutan", "user", "created_at", "updated_at")


class LedgerAdmin(admin.ModelAdmin):
    date_hierarchy = "tanggal"
    search_fields = ("keterangan",)
    ordering = ("-tanggal", "-urutan")

    def get_readonly_fields(self, request, obj=None):
        if obj is None:
            return ()
        if obj.is_locked:
            return [f.name for f in obj._meta.fields]
        return LEDGER_READONLY + tuple(obj.SCOPE_FIELDS)

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(BranchCash)
class BranchCashAdmin(LedgerAdmin):
    list_display = ("tanggal", "cabang", "tipe_kas", "keterangan", "debet", "kredit", "saldo")
    list_filter = ("cabang", "tipe_kas")


@admin.register(HeadquarterCash)
class HeadquarterCashAdmin(LedgerAdmin):
    list_display = ("tanggal", "tipe_kas", "keterangan", "debet", "kredit", "saldo", "status")
    list_filter = ("tipe_kas", "status")


@admin.register(BankStatement)
class BankStatementAdmin(LedgerAdmin):
    list_display = ("tanggal", "bank", "no_rekening", "cabang", "keterangan", "debet", "kredit", "saldo", "status")
    list_filter = ("bank", "cabang", "status")
    search_fields = ("keterangan", "no_rekening")


@admin.register(LedgerHead)
class LedgerHeadAdmin(admin.ModelAdmin):
    list_display = ("ledger", "scope_key", "saldo", "jumlah_entri", "updated_at")
    list_filter = ("ledger",)
    readonly_fields = ("ledger", "scope_key", "saldo", "jumlah_entri", "last_entry_id", "updated_at")
