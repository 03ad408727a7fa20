"""Decoder for a booking's ``additionalChargesDetails`` string.

The backend writes trip extensions and manual charges into one delimited
string, for example::

    Extend Trip 01 Jan 2025 -> 05 Jan 2025: base=500.00, gst(5%)=25.00, total=525.00 | Manual charges: Helmet=100, Total=100

Parsing is lenient: a malformed entry is logged and skipped, the rest of the
string is still decoded.
"""
import logging
import re
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from constants import CHARGE_DETAILS_DELIMITER, MANUAL_CHARGES_TOTAL_PREFIX
from exceptions import ValidationError
from models.charge import ChargeDetails, ExtensionRecord, ManualChargeRecord
from utils.validation import to_decimal

logger = logging.getLogger(__name__)

EXTENSION_PATTERN = re.compile(
    r"^Extend Trip (?P<from_date>.+?) -> (?P<to_date>.+?):\s*"
    r"base=(?P<base>[^,]+),\s*gst\(5%\)=(?P<gst>[^,]+),\s*total=(?P<total>.+)$"
)
MANUAL_CHARGES_PATTERN = re.compile(r"^Manual charges:\s*(?P<pairs>.*)$")


def parse_extension_entry(entry: str) -> Optional[ExtensionRecord]:
    """
    Parse one ``Extend Trip`` entry.

    Args:
        entry: Single entry, already split from the details string

    Returns:
        ExtensionRecord, or None if the entry is not an extension or is malformed
    """
    match = EXTENSION_PATTERN.match(entry)
    if not match:
        return None

    try:
        return ExtensionRecord(
            from_date=match.group("from_date").strip(),
            to_date=match.group("to_date").strip(),
            base_amount=to_decimal(match.group("base"), "base"),
            gst_amount=to_decimal(match.group("gst"), "gst"),
            total_amount=to_decimal(match.group("total"), "total"),
        )
    except (ValidationError, PydanticValidationError) as e:
        logger.warning(f"Skipping malformed extension entry '{entry}': {e}")
        return None


def parse_manual_charges_entry(entry: str) -> List[ManualChargeRecord]:
    """
    Parse one ``Manual charges:`` entry into its ``name=amount`` pairs.

    An entry carrying a ``total...`` pair is a pre-computed summary line and
    yields no charges at all. Otherwise each pair becomes one charge and a
    malformed pair is skipped on its own.

    Args:
        entry: Single entry, already split from the details string

    Returns:
        List of manual charges (empty if the entry is not an itemised manual-charges entry)
    """
    match = MANUAL_CHARGES_PATTERN.match(entry)
    if not match:
        return []

    pairs = []
    for pair in match.group("pairs").split(","):
        if not pair.strip():
            continue

        name, sep, raw_amount = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            logger.warning(f"Skipping malformed manual charge '{pair.strip()}'")
            continue
        pairs.append((name, raw_amount))

    if any(name.lower().startswith(MANUAL_CHARGES_TOTAL_PREFIX) for name, _ in pairs):
        logger.debug(f"Ignoring manual charges summary entry '{entry}'")
        return []

    records = []
    for name, raw_amount in pairs:
        try:
            records.append(
                ManualChargeRecord(name=name, amount=to_decimal(raw_amount, name))
            )
        except (ValidationError, PydanticValidationError) as e:
            logger.warning(f"Skipping malformed manual charge '{name}={raw_amount.strip()}': {e}")

    return records


def parse_charge_details(details: Optional[str]) -> ChargeDetails:
    """
    Decode an ``additionalChargesDetails`` string.

    Args:
        details: Encoded string from the booking (may be None or empty)

    Returns:
        ChargeDetails holding extensions and manual charges in wire order
    """
    entries = []
    if not details or not details.strip():
        return ChargeDetails(entries=entries)

    for raw_entry in details.split(CHARGE_DETAILS_DELIMITER):
        entry = raw_entry.strip()
        if not entry:
            continue

        if entry.startswith("Extend Trip"):
            extension = parse_extension_entry(entry)
            if extension is not None:
                entries.append(extension)
            elif not EXTENSION_PATTERN.match(entry):
                logger.warning(f"Skipping unrecognised extension entry '{entry}'")
        elif entry.startswith("Manual charges:"):
            entries.extend(parse_manual_charges_entry(entry))
        else:
            logger.debug(f"Ignoring charge details entry '{entry}'")

    return ChargeDetails(entries=entries)
