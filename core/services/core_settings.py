# core/services/core_settings.py
from django.conf import settings
from django.core.cache import cache

from core.models.settings import CoreSetting


CACHE_TTL_SECONDS = 60  # boleh 0 kalau tidak mau cache

_MISSING = object()


def _cache_key(category, code):
    return f"core_setting:{category.lower()}:{code.lower()}"


def logistics_default(code, default=None):
    """Nilai default dari settings.LOGISTICS (dipakai kalau belum ada di DB)."""
    return getattr(settings, "LOGISTICS", {}).get(code, default)


def get_setting(category, code, default=None):
    cache_key = _cache_key(category, code)
    cached = cache.get(cache_key, _MISSING)
    if cached is not _MISSING:
        return cached

    obj = CoreSetting.objects.filter(category__iexact=category, code__iexact=code).first()
    if not obj:
        cache.set(cache_key, default, CACHE_TTL_SECONDS)
        return default

    # urutan prioritas: int_value -> char_value
    if obj.int_value is not None:
        val = obj.int_value
    elif obj.char_value not in (None, ""):
        val = obj.char_value
    else:
        val = default

    cache.set(cache_key, val, CACHE_TTL_SECONDS)
    return val


def get_flag(category, code, default=False) -> bool:
    val = get_setting(category, code, None)
    if val is None:
        return bool(default)
    if isinstance(val, str):
        return val.strip().lower() in ("1", "true", "yes", "ya", "on")
    return bool(val)


def set_setting(category, code, *, int_value=None, char_value=None, notes=""):
    obj, created = CoreSetting.objects.get_or_create(
        category=category,
        code=code,
        defaults={"notes": notes or ""},
    )

    obj.int_value = int_value
    obj.char_value = char_value
    if created and not obj.notes:
        obj.notes = notes or ""
    obj.save()

    # invalidate cache
    cache.delete(_cache_key(category, code))

    return obj


def code_retry_attempts() -> int:
    v = int(get_setting("numbering", "CODE_RETRY_ATTEMPTS", 0) or 0)
    return v if v > 0 else int(logistics_default("CODE_RETRY_ATTEMPTS", 3))


def allow_rebill_paid() -> bool:
    return get_flag("billing", "ALLOW_REBILL_PAID", logistics_default("ALLOW_REBILL_PAID", False))
