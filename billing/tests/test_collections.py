from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from billing.models import CollectionItem, CollectionStatus
from billing.services.collections import (
    add_payment, collections_for_customer, create_collection, set_overdue, update_collection,
)
from core.exceptions import (
    AlreadyPaid, EmptyBatch, NonPositiveAmount, NotFound, OwnershipMismatch, ShipmentAlreadyBilled,
)
from core.services.core_settings import set_setting
from shipments.models import Shipment, ShipmentStatus

pytestmark = pytest.mark.django_db


@pytest.fixture
def delivered(make_shipment):
    def _make(**kwargs):
        stt = make_shipment(**kwargs)
        Shipment.objects.filter(pk=stt.pk).update(status=ShipmentStatus.TERKIRIM)
        stt.refresh_from_db()
        return stt

    return _make


@pytest.fixture
def bill(penerima, user):
    def _bill(stts, **kwargs):
        data = dict(pelanggan=penerima, tipe_pelanggan="penerima", stts=stts, user=user)
        data.update(kwargs)
        return create_collection(**data)

    return _bill


def test_total_is_frozen_sum_of_prices(bill, delivered):
    a, b = delivered(), delivered(harga=Decimal("50000"))
    collection = bill([a, b])

    assert collection.no_penagihan.startswith("INV-BDG-")
    assert collection.total_tagihan == Decimal("200000")
    assert collection.status == CollectionStatus.BELUM_LUNAS

    Shipment.objects.filter(pk=a.pk).update(harga=Decimal("1"))
    collection.refresh_from_db()
    assert collection.total_tagihan == Decimal("200000")


def test_input_errors(bill, delivered, make_shipment, pengirim):
    with pytest.raises(EmptyBatch):
        bill([])
    with pytest.raises(NotFound):
        bill([999999])
    with pytest.raises(NotFound):
        bill([delivered()], pelanggan=999999)
    with pytest.raises(ValidationError):
        bill([delivered()], tipe_pelanggan="agen")
    with pytest.raises(ValidationError):
        bill([make_shipment()])  # belum terkirim


def test_ownership_follows_role(bill, delivered, pengirim, penerima):
    stt = delivered()
    with pytest.raises(OwnershipMismatch):
        bill([stt], pelanggan=pengirim)
    with pytest.raises(OwnershipMismatch):
        bill([stt], pelanggan=penerima, tipe_pelanggan="pengirim")

    assert bill([stt], pelanggan=pengirim, tipe_pelanggan="pengirim").pelanggan == pengirim


def test_stt_billed_by_one_open_collection(bill, delivered):
    a, b, c = delivered(), delivered(), delivered()
    bill([a, b])

    with pytest.raises(ShipmentAlreadyBilled):
        bill([c, b])
    assert CollectionItem.objects.filter(shipment=c).count() == 0


def test_installments_until_paid(bill, delivered):
    collection = bill([delivered()])

    with pytest.raises(NonPositiveAmount):
        add_payment(collection, 0)
    with pytest.raises(NonPositiveAmount):
        add_payment(collection, Decimal("-5"))

    p1 = add_payment(collection, Decimal("100000"))
    collection.refresh_from_db()
    assert p1.termin == 1
    assert collection.status == CollectionStatus.BELUM_LUNAS
    assert collection.sisa_tagihan == Decimal("50000")

    p2 = add_payment(collection, Decimal("60000"))
    collection.refresh_from_db()
    assert p2.termin == 2
    assert collection.status == CollectionStatus.LUNAS
    assert collection.tanggal_bayar == p2.tanggal
    assert not collection.items.filter(open_shipment__isnull=False).exists()

    with pytest.raises(AlreadyPaid):
        add_payment(collection, Decimal("1"))


def test_paid_stt_not_rebilled_by_default(bill, delivered):
    stt = delivered()
    add_payment(bill([stt]), Decimal("150000"))

    with pytest.raises(ShipmentAlreadyBilled):
        bill([stt])


def test_rebill_after_paid_when_enabled(bill, delivered):
    stt = delivered()
    add_payment(bill([stt]), Decimal("150000"))
    set_setting("billing", "ALLOW_REBILL_PAID", int_value=1)

    adjustment = bill([stt])
    assert adjustment.status == CollectionStatus.BELUM_LUNAS


def test_overdue_and_listing(bill, delivered, penerima):
    collection = set_overdue(bill([delivered()]))
    assert collection.overdue is True

    assert list(collections_for_customer(penerima, CollectionStatus.BELUM_LUNAS)) == [collection]
    assert list(collections_for_customer(penerima, CollectionStatus.LUNAS)) == []
    with pytest.raises(ValidationError):
        collections_for_customer(penerima, "SEBAGIAN")

    add_payment(collection, Decimal("150000"))
    collection.refresh_from_db()
    assert collection.overdue is False


def test_update_collection_metadata_only(bill, delivered):
    collection = bill([delivered()])

    update_collection(collection, overdue=True, keterangan="Ditagih ulang via telepon")
    collection.refresh_from_db()
    assert collection.overdue is True
    assert collection.keterangan == "Ditagih ulang via telepon"

    with pytest.raises(ValidationError):
        update_collection(collection, status=CollectionStatus.LUNAS)
    with pytest.raises(ValidationError):
        update_collection(collection, total_tagihan=Decimal("1"))

    add_payment(collection, Decimal("150000"))
    with pytest.raises(AlreadyPaid):
        update_collection(collection, overdue=True)
    assert update_collection(collection, keterangan="Lunas transfer").keterangan == "Lunas transfer"


def test_create_collection_requires_user(bill, delivered):
    with pytest.raises(ValidationError):
        bill([delivered()], user=None)
