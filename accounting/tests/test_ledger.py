import random
import threading
from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import connection

from accounting.models import BankStatement, BranchCash, HeadquarterCash, LedgerHead
from accounting.services import ledger
from core.exceptions import AlreadyValidated, FieldLocked, Immutable, InvalidTransition

pytestmark = pytest.mark.django_db

DAY = date(2023, 6, 1)


def _cash(cabang, user, debet=0, kredit=0, **kwargs):
    return ledger.append(
        BranchCash, tanggal=DAY, keterangan="Setoran", user=user,
        debet=debet, kredit=kredit, cabang=cabang, tipe_kas=BranchCash.TipeKas.TANGAN, **kwargs,
    )


def _bank(cabang, user, debet=0, kredit=0, bank="BCA", no_rekening="123"):
    return ledger.append(
        BankStatement, tanggal=DAY, keterangan="Mutasi", user=user,
        debet=debet, kredit=kredit, bank=bank, no_rekening=no_rekening, cabang=cabang,
    )


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_saldo_is_fold_of_history(jkt, user, seed):
    rng = random.Random(seed)
    expected = Decimal("0.00")
    for _ in range(25):
        d = Decimal(rng.randint(0, 500_000)) / 100
        k = Decimal(rng.randint(0, 500_000)) / 100
        entry = _cash(jkt, user, d, k)
        expected += d - k
        assert entry.saldo == expected

    saldos = list(BranchCash.objects.filter(cabang=jkt).order_by("urutan").values_list("saldo", flat=True))
    assert saldos[-1] == expected
    assert ledger.balance(BranchCash, cabang=jkt) == expected


def test_scopes_are_independent(jkt, bdg, user):
    _cash(jkt, user, debet=100)
    _cash(bdg, user, debet=7)
    _cash(jkt, user, kredit=30)
    assert ledger.balance(BranchCash, cabang=jkt) == Decimal("70")
    assert ledger.balance(BranchCash, cabang=bdg) == Decimal("7")

    _bank(jkt, user, debet=1000)
    _bank(jkt, user, debet=5, no_rekening="999")
    _bank(jkt, user, kredit=400)
    assert ledger.balance(BankStatement, bank="BCA", no_rekening="123", cabang=jkt) == Decimal("600")
    assert ledger.balance(BankStatement, bank="BCA", no_rekening="999", cabang=jkt) == Decimal("5")
    assert ledger.balance(BankStatement, bank="BCA", no_rekening="123", cabang=bdg) == Decimal("0")


def test_headquarter_cash_is_global(user):
    for d, k in [(500, 0), (0, 120), (20, 0)]:
        ledger.append(
            HeadquarterCash, tanggal=DAY, keterangan="Kas", user=user,
            debet=d, kredit=k, tipe_kas=HeadquarterCash.TipeKas.BANTUAN,
        )
    assert ledger.balance(HeadquarterCash) == Decimal("400")
    assert list(HeadquarterCash.objects.values_list("urutan", flat=True)) == [1, 2, 3]


def test_append_validation(jkt, user):
    with pytest.raises(ValidationError):
        _cash(jkt, user, debet=-1)
    with pytest.raises(ValidationError):
        ledger.append(BranchCash, tanggal=DAY, keterangan=" ", user=user, cabang=jkt, tipe_kas="Tangan")
    with pytest.raises(ValidationError):
        ledger.append(BranchCash, tanggal=DAY, keterangan="x", user=user, cabang=jkt, tipe_kas="Bantuan")
    assert not BranchCash.objects.exists()
    assert not LedgerHead.objects.exists()


def test_missing_head_continues_from_last_entry(jkt, user):
    _cash(jkt, user, debet=250)
    LedgerHead.objects.all().delete()

    entry = _cash(jkt, user, kredit=50)
    assert (entry.urutan, entry.saldo) == (2, Decimal("200"))


def test_amounts_are_locked_metadata_is_not(jkt, user):
    entry = _cash(jkt, user, debet=100)

    with pytest.raises(FieldLocked):
        ledger.update_entry(entry, debet=Decimal("90"))
    with pytest.raises(FieldLocked):
        ledger.update_entry(entry, kredit=1)

    updated = ledger.update_entry(entry, keterangan="Setoran pagi", debet=Decimal("100.00"))
    assert updated.keterangan == "Setoran pagi"
    assert BranchCash.objects.get(pk=entry.pk).debet == Decimal("100")


def test_bank_scope_fields_are_locked(jkt, bdg, user):
    entry = _bank(jkt, user, debet=10)
    with pytest.raises(FieldLocked):
        ledger.update_entry(entry, cabang=bdg)
    with pytest.raises(FieldLocked):
        ledger.update_entry(entry, no_rekening="555")


def test_validated_statement_is_immutable(jkt, user):
    entry = _bank(jkt, user, debet=10)
    ledger.mark_validated(entry)

    with pytest.raises(AlreadyValidated):
        ledger.mark_validated(entry)
    with pytest.raises(Immutable):
        ledger.update_entry(entry, keterangan="koreksi")


def test_merged_headquarter_cash_is_immutable(user):
    entry = ledger.append(
        HeadquarterCash, tanggal=DAY, keterangan="Kas", user=user, debet=10, tipe_kas="Awal",
    )
    ledger.mark_merged(entry)

    with pytest.raises(InvalidTransition):
        ledger.mark_merged(entry)
    with pytest.raises(Immutable):
        ledger.update_entry(entry, tipe_kas="Akhir")


def test_bank_summary(jkt, bdg, user):
    _bank(jkt, user, debet=1000)
    _bank(jkt, user, kredit=250)
    _bank(bdg, user, debet=40, bank="BRI", no_rekening="777")

    rows = {(r["bank"], r["no_rekening"]): r for r in ledger.bank_summary()}
    assert rows[("BCA", "123")]["saldo"] == Decimal("750")
    assert rows[("BCA", "123")]["jumlah_mutasi"] == 2
    assert rows[("BRI", "777")]["total_debet"] == Decimal("40")

    assert [r["bank"] for r in ledger.bank_summary(cabang=bdg)] == ["BRI"]


@pytest.mark.server_db
@pytest.mark.django_db(transaction=True)
def test_concurrent_appends_keep_the_fold(jkt, user):
    errors = []

    def worker():
        try:
            for _ in range(5):
                _cash(jkt, user, debet=10)
        except Exception as exc:  # pragma: no cover
            errors.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    saldos = list(BranchCash.objects.filter(cabang=jkt).order_by("urutan").values_list("saldo", flat=True))
    assert saldos == [Decimal(10 * i) for i in range(1, 31)]


def test_bank_scope_with_separator_in_names(jkt, user):
    first = _bank(jkt, user, debet=100, bank="A|B", no_rekening="C")
    second = _bank(jkt, user, debet=5, bank="A", no_rekening="B|C")

    assert (first.urutan, first.saldo) == (1, Decimal("100"))
    assert (second.urutan, second.saldo) == (1, Decimal("5"))
    assert LedgerHead.objects.filter(ledger=BankStatement.LEDGER).count() == 2
    assert ledger.balance(BankStatement, bank="A|B", no_rekening="C", cabang=jkt) == Decimal("100")
