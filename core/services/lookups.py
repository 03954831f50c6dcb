# core/services/lookups.py
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError

from core.exceptions import NotFound


def _d(v) -> Decimal:
    if v is None:
        return Decimal("0.00")
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


def get_or_404(model, pk, label, *, lock=False):
    """
    Ambil referensi (Branch, Customer, dst.). None -> ValidationError,
    tidak ada -> NotFound. Instance model dikembalikan apa adanya kecuali
    diminta dikunci.
    """
    if pk is None or pk == "":
        raise ValidationError(f"{label} harus diisi")
    if isinstance(pk, model):
        if not lock:
            return pk
        pk = pk.pk
    qs = model.objects.select_for_update() if lock else model.objects
    try:
        return qs.get(pk=pk)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{label} tidak ditemukan")


def get_user(pk, label="User"):
    return get_or_404(get_user_model(), pk, label)
