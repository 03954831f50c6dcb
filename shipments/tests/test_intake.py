from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from core.exceptions import InUse, NotFound
from core.models import Branch
from shipments.models import Shipment, ShipmentStatus
from shipments.services.intake import (
    delete_shipment, shipments_by_status, shipments_for_branch, track, update_shipment,
)

pytestmark = pytest.mark.django_db


def test_create_shipment_freezes_price_and_writes_first_tracking(make_shipment, jkt):
    stt = make_shipment()

    assert stt.no_stt == "JKT-230601-0001"
    assert stt.barcode == stt.no_stt
    assert stt.status == ShipmentStatus.PENDING
    assert stt.harga == Decimal("150000.00")
    assert stt.cabang == jkt

    events = list(stt.trackings.all())
    assert [(e.status, e.location) for e in events] == [(ShipmentStatus.PENDING, "Jakarta")]


def test_explicit_price_wins(make_shipment):
    stt = make_shipment(harga=Decimal("99000"))
    assert stt.harga == Decimal("99000")


def test_missing_reference_is_not_found(make_shipment):
    with pytest.raises(NotFound):
        make_shipment(cabang_tujuan=999999)


def test_required_fields(make_shipment):
    with pytest.raises(ValidationError):
        make_shipment(pengirim=None)
    with pytest.raises(ValidationError):
        make_shipment(nama_barang="  ")
    with pytest.raises(ValidationError):
        make_shipment(berat=Decimal("0.01"))
    assert Shipment.objects.count() == 0


def test_update_only_descriptive_fields(make_shipment):
    stt = make_shipment()
    update_shipment(stt, nama_barang="Ban", jumlah_colly=3)
    stt.refresh_from_db()
    assert (stt.nama_barang, stt.jumlah_colly) == ("Ban", 3)

    with pytest.raises(ValidationError):
        update_shipment(stt, status=ShipmentStatus.TERKIRIM)
    with pytest.raises(ValidationError):
        update_shipment(stt, harga=Decimal("1"))


def test_delete_blocked_while_referenced(make_shipment, truck_queue, jkt, bdg, checker, user):
    from operations.services.loadings import create_loading

    free = make_shipment()
    loaded = make_shipment()
    create_loading(
        cabang_muat=jkt, cabang_bongkar=bdg, antrian_truck=truck_queue,
        stts=[loaded], checker=checker, user=user,
    )

    with pytest.raises(InUse):
        delete_shipment(loaded)

    delete_shipment(free)
    assert not Shipment.objects.filter(pk=free.pk).exists()


def test_track(make_shipment):
    stt = make_shipment()
    assert track(stt.no_stt) == stt
    with pytest.raises(NotFound):
        track("JKT-000000-0000")


def test_shipments_for_branch_covers_origin_and_destination(make_shipment, jkt, bdg):
    sby = Branch.objects.create(nama_cabang="Surabaya", kode="SBY", kota="Surabaya")
    outbound = make_shipment()
    inbound = make_shipment(cabang_asal=bdg, cabang_tujuan=jkt)
    other = make_shipment(cabang_asal=sby, cabang_tujuan=bdg)

    assert set(shipments_for_branch(jkt)) == {outbound, inbound}
    assert set(shipments_for_branch(bdg)) == {outbound, inbound, other}
    with pytest.raises(NotFound):
        shipments_for_branch(999999)


def test_shipments_by_status(make_shipment, jkt, bdg):
    a = make_shipment()
    b = make_shipment(cabang_asal=bdg, cabang_tujuan=jkt)
    Shipment.objects.filter(pk=b.pk).update(status=ShipmentStatus.TRANSIT)

    assert list(shipments_by_status(ShipmentStatus.PENDING)) == [a]
    assert list(shipments_by_status(ShipmentStatus.TRANSIT, cabang=jkt)) == []
    assert list(shipments_by_status(ShipmentStatus.TRANSIT, cabang=bdg)) == [b]
    with pytest.raises(ValidationError):
        shipments_by_status("HILANG")
