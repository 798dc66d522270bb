import pytest

from domains.listing.models.listing import ListingStatus, PropertyType, TransactionType
from domains.listing.status_labels import (
    property_type_label,
    status_label,
    status_variant,
    transaction_type_label,
)


@pytest.mark.parametrize(
    "status,label,variant",
    [
        ("PENDING", "Pendiente", "secondary"),
        ("APPROVED", "Aprobado", "default"),
        ("REJECTED", "Rechazado", "destructive"),
    ],
)
def test_status_label_and_variant(status, label, variant):
    assert status_label(status) == label
    assert status_variant(status) == variant
    # Enum members map the same as raw strings
    assert status_label(ListingStatus(status)) == label
    assert status_variant(ListingStatus(status)) == variant


def test_unknown_status():
    assert status_label("ARCHIVED") == "ARCHIVED"
    assert status_variant("ARCHIVED") == "outline"
    assert status_variant(None) == "outline"


def test_property_type_labels():
    assert property_type_label(PropertyType.HOUSE) == "Casa"
    assert property_type_label("APARTMENT") == "Departamento"
    assert property_type_label("OFFICE") == "Oficina"
    assert property_type_label("LAND") == "Terreno"


def test_transaction_type_labels():
    assert transaction_type_label(TransactionType.SALE) == "Venta"
    assert transaction_type_label("RENT") == "Alquiler"
    assert transaction_type_label("ANTICRETICO") == "Anticrético"
