from decimal import Decimal

import pytest

from core.exceptions import Immutable, InUse, InvalidTransition, NotFound
from operations.models import Pickup, PickupRequest
from operations.services import pickups
from shipments.models import PaymentType, ShipmentStatus as S

pytestmark = pytest.mark.django_db


@pytest.fixture
def pickup_vehicle(make_vehicle):
    from fleet.models import VehicleType

    return make_vehicle(VehicleType.LANSIR)


@pytest.fixture
def new_pickup(jkt, pengirim, pickup_vehicle, user):
    def _make(**kwargs):
        data = dict(
            cabang=jkt, pengirim=pengirim, supir=pickup_vehicle.supir, kendaraan=pickup_vehicle,
            alamat_pengambilan="Jl. Sudirman 1", tujuan="Bandung", jumlah_colly=2, user=user,
        )
        data.update(kwargs)
        return pickups.create_pickup(**data)

    return _make


@pytest.fixture
def new_request(jkt, pengirim, user):
    def _make(**kwargs):
        data = dict(
            cabang=jkt, pengirim=pengirim, alamat_pengambilan="Jl. Sudirman 1",
            tujuan="Bandung", jumlah_colly=2, user=user,
        )
        data.update(kwargs)
        return pickups.create_request(**data)

    return _make


def test_request_code_uses_day_first_date(new_request):
    from datetime import date

    req = new_request(on_date=date(2023, 6, 1))
    assert req.no_request == "REQ-JKT-010623-0001"
    assert req.status == PickupRequest.Status.PENDING


def test_pickup_from_request_finishes_request(new_pickup, new_request):
    req = new_request()
    pickup = new_pickup(request=req)

    req.refresh_from_db()
    assert req.status == PickupRequest.Status.FINISH
    assert req.pickup == pickup
    assert pickup.status == Pickup.Status.PENDING

    with pytest.raises(Immutable):
        pickups.update_request(req, notes="ubah")
    with pytest.raises(Immutable):
        pickups.delete_request(req)
    with pytest.raises(InvalidTransition):
        new_pickup(request=req)


def test_cancel_request(new_request):
    req = pickups.cancel_request(new_request())
    assert req.status == PickupRequest.Status.CANCELLED
    assert list(pickups.pending_requests()) == []


def test_intake_and_attach_shipments(new_pickup, make_shipment, penerima, bdg, user):
    pickup = new_pickup()
    stt = pickups.intake_shipment(
        pickup, user=user, cabang_tujuan=bdg, penerima=penerima, nama_barang="Dus",
        berat=Decimal("2"), harga_per_kilo=Decimal("10000"), payment_type=PaymentType.COD,
    )
    other = make_shipment()
    pickups.add_shipments(pickup, [other])

    assert stt.status == S.PENDING
    assert stt.pengirim == pickup.pengirim
    assert pickup.shipment_list() == [stt, other]


def test_shipment_in_one_pickup_only(new_pickup, make_shipment):
    stt = make_shipment()
    first, second = new_pickup(), new_pickup()
    pickups.add_shipments(first, [stt])

    with pytest.raises(InUse):
        pickups.add_shipments(second, [stt])


def test_remove_and_delete(new_pickup, make_shipment):
    stt = make_shipment()
    pickup = new_pickup(stts=[stt])

    with pytest.raises(InUse):
        pickups.delete_pickup(pickup)

    pickups.remove_shipment(pickup, stt)
    with pytest.raises(NotFound):
        pickups.remove_shipment(pickup, stt)

    pickups.delete_pickup(pickup)
    assert not Pickup.objects.filter(pk=pickup.pk).exists()


def test_pickup_status_flow(new_pickup):
    pickup = new_pickup()
    with pytest.raises(InvalidTransition):
        pickups.finish_pickup(pickup)

    pickup = pickups.depart_pickup(pickup)
    assert pickup.waktu_berangkat is not None
    with pytest.raises(InvalidTransition):
        pickups.cancel_pickup(pickup)

    pickup = pickups.finish_pickup(pickup)
    assert pickup.status == Pickup.Status.SELESAI
    assert pickup.waktu_pulang is not None

    with pytest.raises(InvalidTransition):
        pickups.update_pickup(pickup, tujuan="Bogor")


def test_cancelled_pickup_is_closed(new_pickup, make_shipment):
    pickup = pickups.cancel_pickup(new_pickup())
    with pytest.raises(InvalidTransition):
        pickups.add_shipments(pickup, [make_shipment()])
