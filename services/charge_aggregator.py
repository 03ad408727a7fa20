"""Charge aggregation: turns a booking's charge fields into a payable breakdown."""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from constants import (
    LINE_ITEM_ADVANCE,
    LINE_ITEM_CHARGE,
    LINE_ITEM_DISCOUNT,
    LINE_ITEM_TAX,
)
from models.booking import Booking
from models.charge import AdditionalCharge
from models.invoice import InvoiceBreakdown, InvoiceLineItem
from services.charge_details_parser import parse_charge_details
from utils.formatting import round_currency

logger = logging.getLogger(__name__)


class ChargeAggregator:
    """
    Compute the invoice breakdown for a booking.

    Pure computation: no I/O, no state between calls. Every component is
    rounded to whole rupees on its own before the components are combined,
    which matches the totals the backend prints.
    """

    def compute_breakdown(
        self,
        booking: Booking,
        additional_charges: Optional[Iterable[AdditionalCharge]] = None
    ) -> InvoiceBreakdown:
        """
        Compute the breakdown.

        Operator-entered additional charges are reported separately
        (``persisted_charges_total`` and ``staged_charges_total``) and do not
        enter the payable totals; the backend folds saved charges into
        ``additionalChargesDetails`` as manual charges.

        Args:
            booking: Booking with charge fields and encoded charge details
            additional_charges: Charges currently listed for the booking

        Returns:
            InvoiceBreakdown
        """
        details = parse_charge_details(booking.additional_charges_details)
        extensions = details.extensions
        manual_charges = details.manual_charges

        base_rental_price = round_currency(booking.charges)
        base_rental_gst = round_currency(booking.gst)
        delivery_charges = round_currency(booking.delivery_charges)
        coupon_discount = round_currency(booking.coupon_amount)
        late_fee = round_currency(booking.late_fee_charges)
        extra_km_charges = round_currency(booking.late_charges_km)
        advance_amount = round_currency(booking.advance_amount)
        extension_base_total = round_currency(sum((e.base_amount for e in extensions), Decimal("0")))
        extension_gst_total = round_currency(sum((e.gst_amount for e in extensions), Decimal("0")))
        manual_charges_total = round_currency(sum((m.amount for m in manual_charges), Decimal("0")))

        subtotal_before_gst = (
            base_rental_price
            + delivery_charges
            + late_fee
            + extra_km_charges
            + extension_base_total
            + manual_charges_total
            - coupon_discount
        )
        total_gst_amount = base_rental_gst + extension_gst_total
        # Advance is shown as received within the gross total, then deducted
        grand_total = subtotal_before_gst + total_gst_amount + advance_amount
        final_amount_payable = max(0, grand_total - advance_amount)

        persisted_total, staged_total = self._additional_charge_totals(additional_charges or [])

        breakdown = InvoiceBreakdown(
            base_rental_price=base_rental_price,
            base_rental_gst=base_rental_gst,
            delivery_charges=delivery_charges,
            coupon_discount=coupon_discount,
            late_fee=late_fee,
            extra_km_charges=extra_km_charges,
            advance_amount=advance_amount,
            extension_base_total=extension_base_total,
            extension_gst_total=extension_gst_total,
            manual_charges_total=manual_charges_total,
            subtotal_before_gst=subtotal_before_gst,
            total_gst_amount=total_gst_amount,
            grand_total=grand_total,
            final_amount_payable=final_amount_payable,
            line_items=self._build_line_items(booking, extensions, manual_charges),
            extensions=extensions,
            manual_charges=manual_charges,
            persisted_charges_total=persisted_total,
            staged_charges_total=staged_total,
        )

        logger.debug(
            f"Breakdown for booking {booking.id}: subtotal={subtotal_before_gst}, "
            f"gst={total_gst_amount}, grand_total={grand_total}, payable={final_amount_payable}"
        )

        return breakdown

    def _build_line_items(self, booking: Booking, extensions, manual_charges) -> List[InvoiceLineItem]:
        """Ordered line items; optional components appear only when non-zero."""
        items = [
            InvoiceLineItem(
                description="Base Rental",
                amount=round_currency(booking.charges),
                category=LINE_ITEM_CHARGE,
            ),
            InvoiceLineItem(
                description="GST on Base Rental",
                amount=round_currency(booking.gst),
                category=LINE_ITEM_TAX,
            ),
        ]

        optional = [
            ("Delivery Charges", booking.delivery_charges, LINE_ITEM_CHARGE),
            ("Late Fee", booking.late_fee_charges, LINE_ITEM_CHARGE),
            ("Extra KM Charges", booking.late_charges_km, LINE_ITEM_CHARGE),
        ]
        for description, amount, category in optional:
            rounded = round_currency(amount)
            if rounded:
                items.append(InvoiceLineItem(description=description, amount=rounded, category=category))

        for extension in extensions:
            items.append(InvoiceLineItem(
                description=f"Trip Extension ({extension.from_date} -> {extension.to_date})",
                amount=round_currency(extension.base_amount),
                category=LINE_ITEM_CHARGE,
            ))
            items.append(InvoiceLineItem(
                description=f"GST on Extension ({extension.from_date} -> {extension.to_date})",
                amount=round_currency(extension.gst_amount),
                category=LINE_ITEM_TAX,
            ))

        for manual in manual_charges:
            items.append(InvoiceLineItem(
                description=manual.name,
                amount=round_currency(manual.amount),
                category=LINE_ITEM_CHARGE,
            ))

        coupon = round_currency(booking.coupon_amount)
        if coupon:
            items.append(InvoiceLineItem(description="Coupon Discount", amount=coupon, category=LINE_ITEM_DISCOUNT))

        advance = round_currency(booking.advance_amount)
        if advance:
            items.append(InvoiceLineItem(description="Advance Paid", amount=advance, category=LINE_ITEM_ADVANCE))

        return items

    @staticmethod
    def _additional_charge_totals(charges: Iterable[AdditionalCharge]) -> tuple[int, int]:
        persisted = Decimal("0")
        staged = Decimal("0")
        for charge in charges:
            if charge.saved_to_backend:
                persisted += charge.amount
            else:
                staged += charge.amount
        return round_currency(persisted), round_currency(staged)


_aggregator = ChargeAggregator()


def compute_breakdown(
    booking: Booking,
    additional_charges: Optional[Iterable[AdditionalCharge]] = None
) -> InvoiceBreakdown:
    """Module-level shortcut for ``ChargeAggregator().compute_breakdown``."""
    return _aggregator.compute_breakdown(booking, additional_charges)
