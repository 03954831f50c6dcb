"""Alur lengkap satu STT: pickup → muat → lansir → penagihan lunas."""
from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from billing.models import CollectionStatus
from billing.services.collections import add_payment, create_collection
from fleet.models import VehicleType
from operations.services import pickups
from operations.services.deliveries import create_delivery, update_delivery_status
from operations.services.loadings import create_loading, update_loading_status
from shipments.models import PaymentType, Shipment, ShipmentStatus as S

pytestmark = pytest.mark.django_db


def test_jakarta_to_bandung(jkt, bdg, pengirim, penerima, make_vehicle, truck_queue, van_queue, checker, user):
    day1, day2 = date(2023, 6, 1), date(2023, 6, 2)

    pickup_van = make_vehicle(VehicleType.LANSIR)
    pickup = pickups.create_pickup(
        cabang=jkt, pengirim=pengirim, supir=pickup_van.supir, kendaraan=pickup_van,
        alamat_pengambilan="Jl. Sudirman 1", tujuan="Bandung", jumlah_colly=1, user=user, on_date=day1,
    )
    stt = pickups.intake_shipment(
        pickup, user=user, cabang_tujuan=bdg, penerima=penerima, nama_barang="Sparepart",
        berat=Decimal("10"), harga_per_kilo=Decimal("15000"), payment_type=PaymentType.CAD, on_date=day1,
    )
    assert pickup.no_pengambilan == "PKP-JKT-230601-0001"
    assert stt.no_stt == "JKT-230601-0001"
    assert stt.status == S.PENDING

    loading = create_loading(
        cabang_muat=jkt, cabang_bongkar=bdg, antrian_truck=truck_queue,
        stts=[stt], checker=checker, user=user, on_date=day1,
    )
    assert loading.id_muat == "MT-JKT-230601-0001"
    assert Shipment.objects.get(pk=stt.pk).status == S.MUAT

    update_loading_status(loading, "BERANGKAT", user=user)
    assert Shipment.objects.get(pk=stt.pk).status == S.TRANSIT

    delivery = create_delivery(
        cabang=bdg, antrian_kendaraan=van_queue, stts=[stt],
        checker=checker, admin=user, user=user, on_date=day2,
    )
    assert delivery.id_lansir == "LN-BDG-230602-0001"
    assert Shipment.objects.get(pk=stt.pk).status == S.LANSIR

    update_delivery_status(delivery, "TERKIRIM", nama_penerima="Budi", user=user)
    stt.refresh_from_db()
    assert stt.status == S.TERKIRIM

    collection = create_collection(
        pelanggan=penerima, tipe_pelanggan="penerima", stts=[stt], user=user, on_date=day2,
    )
    assert collection.total_tagihan == Decimal("150000")

    add_payment(collection, Decimal("150000"), user=user)
    collection.refresh_from_db()
    assert collection.status == CollectionStatus.LUNAS
    assert collection.tanggal_bayar is not None

    assert [t.status for t in stt.trackings.all()] == [S.PENDING, S.MUAT, S.TRANSIT, S.LANSIR, S.TERKIRIM]


def test_failed_loading_leaves_stt_pending(make_shipment, truck_queue, jkt, checker, user):
    stt = make_shipment()
    # cabang bongkar salah → seluruh muat batal
    with pytest.raises(ValidationError):
        create_loading(
            cabang_muat=jkt, cabang_bongkar=jkt, antrian_truck=truck_queue,
            stts=[stt], checker=checker, user=user,
        )

    assert Shipment.objects.get(pk=stt.pk).status == S.PENDING
