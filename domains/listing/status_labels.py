"""
domains/listing/status_labels.py

Display labels and badge variants for listing enums. One mapping, used by every
view and by the API responses.
"""

from __future__ import annotations

from typing import Any

STATUS_LABELS = {
    "PENDING": "Pendiente",
    "APPROVED": "Aprobado",
    "REJECTED": "Rechazado",
}

STATUS_VARIANTS = {
    "PENDING": "secondary",
    "APPROVED": "default",
    "REJECTED": "destructive",
}

PROPERTY_TYPE_LABELS = {
    "HOUSE": "Casa",
    "APARTMENT": "Departamento",
    "OFFICE": "Oficina",
    "LAND": "Terreno",
}

TRANSACTION_TYPE_LABELS = {
    "SALE": "Venta",
    "RENT": "Alquiler",
    "ANTICRETICO": "Anticrético",
}


def _key(value: Any) -> str:
    # Accept enum members as well as raw strings
    return str(getattr(value, "value", value))


def status_label(status: Any) -> str:
    key = _key(status)
    return STATUS_LABELS.get(key, key)


def status_variant(status: Any) -> str:
    return STATUS_VARIANTS.get(_key(status), "outline")


def property_type_label(property_type: Any) -> str:
    key = _key(property_type)
    return PROPERTY_TYPE_LABELS.get(key, key)


def transaction_type_label(transaction_type: Any) -> str:
    key = _key(transaction_type)
    return TRANSACTION_TYPE_LABELS.get(key, key)
