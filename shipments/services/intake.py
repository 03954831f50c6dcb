# shipments/services/intake.py
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q

from core.exceptions import InUse, NotFound
from core.models import Branch, Customer
from core.numbering import allocate
from core.services.lookups import _d, get_or_404
from shipments.models import Shipment, ShipmentStatus, ShipmentTracking

logger = logging.getLogger("cargotrack.shipments")

# field deskriptif yang boleh diubah setelah STT dibuat
EDITABLE_FIELDS = {
    "nama_barang", "komoditi", "packing", "jumlah_colly", "keterangan", "kode_penerus",
}


@transaction.atomic
def create_shipment(
    *,
    cabang_asal,
    cabang_tujuan,
    pengirim,
    penerima,
    nama_barang: str,
    berat,
    payment_type: str,
    user=None,
    cabang=None,
    harga_per_kilo=None,
    harga=None,
    komoditi: str = "",
    packing: str = "",
    jumlah_colly: int = 1,
    keterangan: str = "",
    kode_penerus: str = "70",
    on_date=None,
) -> Shipment:
    """
    Buat STT baru berstatus PENDING. Harga dibekukan saat ini juga:
    kalau tidak diisi, harga = berat × harga_per_kilo.
    """
    asal = get_or_404(Branch, cabang_asal, "Cabang asal")
    tujuan = get_or_404(Branch, cabang_tujuan, "Cabang tujuan")
    pengirim = get_or_404(Customer, pengirim, "Pengirim")
    penerima = get_or_404(Customer, penerima, "Penerima")
    owner = get_or_404(Branch, cabang, "Cabang") if cabang is not None else asal

    if not (nama_barang or "").strip():
        raise ValidationError("Nama barang harus diisi")

    berat = _d(berat)
    harga_per_kilo = _d(harga_per_kilo)
    harga = _d(harga) if harga is not None else (berat * harga_per_kilo).quantize(Decimal("0.01"))
    if harga < 0 or harga_per_kilo < 0:
        raise ValidationError("Harga tidak boleh negatif")

    def _create(code):
        stt = Shipment(
            no_stt=code,
            barcode=code,
            cabang_asal=asal,
            cabang_tujuan=tujuan,
            pengirim=pengirim,
            penerima=penerima,
            nama_barang=nama_barang.strip(),
            komoditi=komoditi,
            packing=packing,
            jumlah_colly=jumlah_colly,
            berat=berat,
            harga_per_kilo=harga_per_kilo,
            harga=harga,
            keterangan=keterangan,
            kode_penerus=kode_penerus,
            payment_type=payment_type,
            status=ShipmentStatus.PENDING,
            cabang=owner,
            created_by=user,
        )
        stt.full_clean(exclude=["no_stt"])
        stt.save()
        return stt

    stt = allocate("STT", asal, _create, on_date=on_date)

    ShipmentTracking.objects.create(
        shipment=stt,
        status=ShipmentStatus.PENDING,
        location=asal.nama_cabang,
        notes="STT dibuat",
        source_ref=stt.no_stt,
        user=user,
    )
    logger.info("STT %s dibuat di %s", stt.no_stt, asal)
    return stt


@transaction.atomic
def update_shipment(stt: Shipment, **changes) -> Shipment:
    locked = set(changes) - EDITABLE_FIELDS
    if locked:
        raise ValidationError(f"Field tidak dapat diubah: {', '.join(sorted(locked))}")

    for field, value in changes.items():
        setattr(stt, field, value)
    stt.full_clean(exclude=["no_stt"])
    stt.save(update_fields=[*changes.keys(), "updated_at"])
    return stt


def referencing_documents(stt: Shipment) -> list[str]:
    """Nomor dokumen yang masih mereferensikan STT ini."""
    refs = []
    refs += [p.no_pengambilan for p in stt.pickups.all()]
    refs += [m.id_muat for m in stt.loadings.all()]
    refs += [d.id_lansir for d in stt.deliveries.all()]
    refs += [r.id_retur for r in stt.returns.all()]
    refs += [c.no_penagihan for c in stt.collections.all()]
    return refs


@transaction.atomic
def delete_shipment(stt: Shipment) -> None:
    refs = referencing_documents(stt)
    if refs:
        raise InUse(f"STT {stt.no_stt} masih digunakan di {', '.join(refs)}")
    no_stt = stt.no_stt
    stt.delete()
    logger.info("STT %s dihapus", no_stt)


def track(no_stt: str) -> Shipment:
    try:
        return (
            Shipment.objects
            .select_related("cabang_asal", "cabang_tujuan", "pengirim", "penerima")
            .get(no_stt=no_stt)
        )
    except Shipment.DoesNotExist:
        raise NotFound("STT tidak ditemukan")


def _listing(qs):
    return qs.select_related("cabang_asal", "cabang_tujuan", "pengirim", "penerima").order_by("-created_at", "-id")


def shipments_for_branch(cabang):
    """STT yang berangkat dari atau menuju cabang ini."""
    branch = get_or_404(Branch, cabang, "Cabang")
    return _listing(Shipment.objects.filter(Q(cabang_asal=branch) | Q(cabang_tujuan=branch)))


def shipments_by_status(status, cabang=None):
    if status not in ShipmentStatus.values:
        raise ValidationError("Status STT tidak valid")
    qs = Shipment.objects.filter(status=status)
    if cabang is not None:
        qs = qs.filter(cabang=get_or_404(Branch, cabang, "Cabang"))
    return _listing(qs)
