"""Tests for the additionalChargesDetails parser."""
import logging
from decimal import Decimal

from models.charge import ExtensionRecord, ManualChargeRecord
from services.charge_details_parser import (
    parse_charge_details,
    parse_extension_entry,
    parse_manual_charges_entry,
)

SAMPLE = (
    "Extend Trip 01 Jan 2025 -> 05 Jan 2025: base=500.00, gst(5%)=25.00, total=525.00"
    " | Manual charges: Helmet=100, Total=100"
)


def test_sample_yields_one_extension_and_drops_total_line():
    details = parse_charge_details(SAMPLE)

    assert len(details.extensions) == 1
    assert details.manual_charges == []

    extension = details.extensions[0]
    assert extension.from_date == "01 Jan 2025"
    assert extension.to_date == "05 Jan 2025"
    assert extension.base_amount == Decimal("500")
    assert extension.gst_amount == Decimal("25")
    assert extension.total_amount == Decimal("525")


def test_empty_or_missing_details():
    assert parse_charge_details(None).entries == []
    assert parse_charge_details("").entries == []
    assert parse_charge_details("   ").entries == []


def test_manual_charges_parsed_per_pair():
    records = parse_manual_charges_entry("Manual charges: Helmet=100, Damage=250.50")

    assert [(r.name, r.amount) for r in records] == [
        ("Helmet", Decimal("100")),
        ("Damage", Decimal("250.50")),
    ]


def test_summary_entry_with_total_pair_yields_nothing():
    assert parse_manual_charges_entry("Manual charges: Fuel=10, TOTAL=10") == []
    assert parse_manual_charges_entry("Manual charges: Total Amount=10, Fuel=10") == []
    assert parse_manual_charges_entry("Manual charges: Fuel=10, Totalled=x") == []


def test_itemised_entry_alongside_summary_entry():
    details = parse_charge_details("Manual charges: Helmet=100 | Manual charges: Helmet=100, Total=100")

    assert [(r.name, r.amount) for r in details.manual_charges] == [("Helmet", Decimal("100"))]


def test_entries_kept_in_wire_order():
    details = parse_charge_details(
        "Manual charges: Helmet=100"
        " | Extend Trip 05 Jan 2025 10:00 -> 06 Jan 2025 10:00: base=200, gst(5%)=10, total=210"
    )

    assert isinstance(details.entries[0], ManualChargeRecord)
    assert isinstance(details.entries[1], ExtensionRecord)
    assert details.extensions[0].from_date == "05 Jan 2025 10:00"
    assert details.extensions[0].to_date == "06 Jan 2025 10:00"


def test_malformed_extension_is_skipped_without_aborting(caplog):
    details_string = (
        "Extend Trip 01 Jan 2025 -> 02 Jan 2025: base=abc, gst(5%)=25.00, total=525.00"
        " | Extend Trip 02 Jan 2025 -> 03 Jan 2025: base=100, gst(5%)=5, total=105"
        " | Manual charges: Helmet=100"
    )

    with caplog.at_level(logging.WARNING):
        details = parse_charge_details(details_string)

    assert len(details.extensions) == 1
    assert details.extensions[0].base_amount == Decimal("100")
    assert len(details.manual_charges) == 1
    assert "Skipping malformed extension entry" in caplog.text


def test_extension_with_inconsistent_total_is_skipped():
    assert parse_extension_entry(
        "Extend Trip 01 Jan 2025 -> 02 Jan 2025: base=500, gst(5%)=25, total=600"
    ) is None


def test_extension_total_within_rounding_tolerance():
    extension = parse_extension_entry(
        "Extend Trip 01 Jan 2025 -> 02 Jan 2025: base=333.33, gst(5%)=16.67, total=350.50"
    )

    assert extension is not None
    assert abs(extension.total_amount - (extension.base_amount + extension.gst_amount)) < 1


def test_malformed_manual_pairs_are_skipped_individually():
    records = parse_manual_charges_entry("Manual charges: Helmet, Damage=abc, Fuel=50")

    assert [(r.name, r.amount) for r in records] == [("Fuel", Decimal("50"))]


def test_unknown_entries_are_ignored():
    details = parse_charge_details("Coupon applied: NEWYEAR | Manual charges: Helmet=100")

    assert len(details.entries) == 1
    assert details.manual_charges[0].name == "Helmet"
