import itertools
import os
from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache

from core.models import Branch, Customer
from fleet.models import TruckQueue, Vehicle, VehicleQueue, VehicleType
from fleet.services import queues
from shipments.models import PaymentType
from shipments.services.intake import create_shipment

DAY = date(2023, 6, 1)


def pytest_collection_modifyitems(config, items):
    # test konkurensi butuh row lock sungguhan; SQLite in-memory tidak punya
    if os.environ.get("DB_ENGINE", "sqlite") != "sqlite":
        return
    skip = pytest.mark.skip(reason="butuh row lock database server (jalankan dengan DB_ENGINE=mysql)")
    for item in items:
        if "server_db" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(autouse=True)
def _clear_cache():
    # core_settings dan throttle API memakai cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_user(db):
    seq = itertools.count(1)

    def _make(username=None, **kwargs):
        username = username or f"user{next(seq)}"
        return get_user_model().objects.create_user(username=username, password="secret", **kwargs)

    return _make


@pytest.fixture
def user(make_user):
    return make_user("admin")


@pytest.fixture
def jkt(db):
    return Branch.objects.create(nama_cabang="Jakarta", kode="JKT", kota="Jakarta")


@pytest.fixture
def bdg(db):
    return Branch.objects.create(nama_cabang="Bandung", kode="BDG", kota="Bandung")


@pytest.fixture
def make_customer(jkt):
    def _make(nama="PT Maju", cabang=None, **kwargs):
        return Customer.objects.create(nama=nama, cabang=cabang or jkt, **kwargs)

    return _make


@pytest.fixture
def pengirim(make_customer):
    return make_customer("PT Maju Jaya")


@pytest.fixture
def penerima(make_customer, bdg):
    return make_customer("Budi", cabang=bdg)


@pytest.fixture
def make_shipment(jkt, bdg, pengirim, penerima, user):
    """STT PENDING Jakarta → Bandung, 10 kg × 15.000 = 150.000."""

    def _make(**kwargs):
        data = dict(
            cabang_asal=jkt,
            cabang_tujuan=bdg,
            pengirim=pengirim,
            penerima=penerima,
            nama_barang="Sparepart",
            berat=Decimal("10"),
            harga_per_kilo=Decimal("15000"),
            payment_type=PaymentType.CASH,
            user=user,
            on_date=DAY,
        )
        data.update(kwargs)
        return create_shipment(**data)

    return _make


@pytest.fixture
def make_vehicle(jkt, make_user):
    seq = itertools.count(1)

    def _make(tipe=VehicleType.ANTAR_CABANG, cabang=None, no_polisi=None, **kwargs):
        n = next(seq)
        return Vehicle.objects.create(
            no_polisi=no_polisi or f"B {9000 + n} XY",
            nama_kendaraan=f"Kendaraan {n}",
            tipe=tipe,
            supir=kwargs.pop("supir", None) or make_user(f"supir{n}"),
            no_telepon_supir="0811000%03d" % n,
            cabang=cabang or jkt,
            **kwargs,
        )

    return _make


@pytest.fixture
def truck(make_vehicle):
    return make_vehicle(VehicleType.ANTAR_CABANG)


@pytest.fixture
def van(make_vehicle, bdg):
    return make_vehicle(VehicleType.LANSIR, cabang=bdg)


@pytest.fixture
def truck_queue(truck, jkt, user):
    return queues.enqueue(TruckQueue, kendaraan=truck, cabang=jkt, user=user)


@pytest.fixture
def van_queue(van, bdg, user):
    return queues.enqueue(VehicleQueue, kendaraan=van, cabang=bdg, user=user)


@pytest.fixture
def checker(make_user):
    return make_user("checker")
