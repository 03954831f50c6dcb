import pytest

from core.exceptions import EmptyBatch, InvalidTransition, NotFound
from shipments.models import Shipment, ShipmentStatus as S, ShipmentTracking
from shipments.services.status import can_transition, lock_shipments, transition_batch

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize("current,target,ok", [
    (S.PENDING, S.MUAT, True),
    (S.PENDING, S.LANSIR, True),
    (S.MUAT, S.TRANSIT, True),
    (S.TRANSIT, S.LANSIR, True),
    (S.LANSIR, S.TERKIRIM, True),
    (S.LANSIR, S.RETURN, True),
    (S.PENDING, S.TERKIRIM, False),
    (S.TRANSIT, S.MUAT, False),
    (S.TERKIRIM, S.RETURN, False),
    (S.RETURN, S.PENDING, False),
])
def test_allowed_transitions(current, target, ok):
    assert can_transition(current, target) is ok


def test_lock_shipments_keeps_input_order_without_duplicates(make_shipment):
    a, b = make_shipment(), make_shipment()
    assert lock_shipments([b.pk, a, b]) == [b, a]


def test_lock_shipments_errors(make_shipment):
    with pytest.raises(EmptyBatch):
        lock_shipments([])
    stt = make_shipment()
    with pytest.raises(NotFound):
        lock_shipments([stt.pk, 999999])


def test_batch_moves_all_and_appends_tracking(make_shipment, user):
    batch = [make_shipment(), make_shipment()]
    transition_batch(batch, S.MUAT, user=user, location="Gudang JKT", source_ref="MT-X")

    assert set(Shipment.objects.values_list("status", flat=True)) == {S.MUAT}
    rows = ShipmentTracking.objects.filter(status=S.MUAT)
    assert rows.count() == 2
    assert {r.source_ref for r in rows} == {"MT-X"}


def test_batch_is_all_or_nothing(make_shipment):
    ok, stale = make_shipment(), make_shipment()
    Shipment.objects.filter(pk=stale.pk).update(status=S.TERKIRIM)
    stale.refresh_from_db()

    with pytest.raises(InvalidTransition):
        transition_batch([ok, stale], S.MUAT)

    ok.refresh_from_db()
    assert ok.status == S.PENDING
    assert not ShipmentTracking.objects.filter(status=S.MUAT).exists()


def test_batch_detects_concurrent_change(make_shipment):
    stt = make_shipment()
    # baris berubah setelah dibaca (proses lain)
    Shipment.objects.filter(pk=stt.pk).update(status=S.RETURN)

    with pytest.raises(InvalidTransition):
        transition_batch([stt], S.MUAT)
