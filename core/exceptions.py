# core/exceptions.py
"""
Error domain untuk seluruh alur STT.

Semua error turunan ValidationError Django (kecuali NotFound yang turunan
ObjectDoesNotExist), jadi form/API cukup menangkap dua kelas itu. Setiap
error membawa `code` yang stabil untuk diterjemahkan oleh layer API.
"""
from django.core.exceptions import ObjectDoesNotExist, ValidationError


class NotFound(ObjectDoesNotExist):
    code = "not_found"

    def __init__(self, message="Data tidak ditemukan"):
        super().__init__(message)
        self.message = message


class DomainError(ValidationError):
    default_code = "invalid"
    default_message = "Data tidak valid"

    def __init__(self, message=None, code=None, params=None):
        super().__init__(message or self.default_message, code=code or self.default_code, params=params)


class InvalidTransition(DomainError):
    default_code = "invalid_transition"
    default_message = "Perubahan status tidak diizinkan"


class AlreadyQueued(DomainError):
    default_code = "already_queued"
    default_message = "Kendaraan sudah dalam antrian"


class InUse(DomainError):
    default_code = "in_use"
    default_message = "Data sedang digunakan"


class EmptyBatch(DomainError):
    default_code = "empty_batch"
    default_message = "STT harus diisi"


class ShipmentAlreadyBilled(DomainError):
    default_code = "shipment_already_billed"
    default_message = "STT sudah ditagih di penagihan lain"


class OwnershipMismatch(DomainError):
    default_code = "ownership_mismatch"
    default_message = "STT bukan milik pelanggan ini"


class AlreadyPaid(DomainError):
    default_code = "already_paid"
    default_message = "Penagihan sudah lunas"


class NonPositiveAmount(DomainError):
    default_code = "non_positive_amount"
    default_message = "Jumlah bayar harus lebih dari 0"


class DuplicateCode(DomainError):
    default_code = "duplicate_code"
    default_message = "Nomor dokumen bentrok"


class Immutable(DomainError):
    default_code = "immutable"
    default_message = "Data sudah dikunci dan tidak dapat diubah"


class FieldLocked(DomainError):
    default_code = "field_locked"
    default_message = "Perubahan nilai tidak diizinkan, silakan buat transaksi baru"


class AlreadyValidated(DomainError):
    default_code = "already_validated"
    default_message = "Mutasi rekening sudah divalidasi"
