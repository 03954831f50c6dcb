# core/admin.py
from django.contrib import admin

from .models import Branch, CodeSequence, CoreSetting, Customer


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ("nama_cabang", "kode", "kota", "penanggung_jawab", "telepon")
    search_fields = ("nama_cabang", "kode", "kota")


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("nama", "tipe", "perusahaan", "kota", "telepon", "cabang")
    list_filter = ("tipe", "cabang")
    search_fields = ("nama", "perusahaan", "telepon")
    autocomplete_fields = ("cabang",)


@admin.register(CodeSequence)
class CodeSequenceAdmin(admin.ModelAdmin):
    list_display = ("entity_type", "branch_code", "period", "last_number", "updated_at")
    list_filter = ("entity_type", "branch_code")
    date_hierarchy = "period"

    # counter hanya boleh naik lewat core.numbering
    def get_readonly_fields(self, request, obj=None):
        return ("entity_type", "branch_code", "period", "last_number", "updated_at") if obj else ()


@admin.register(CoreSetting)
class CoreSettingAdmin(admin.ModelAdmin):
    list_display = ("category", "code", "int_value", "char_value", "notes")
    list_filter = ("category",)
    search_fields = ("category", "code", "notes")
