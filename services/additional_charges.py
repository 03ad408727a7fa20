"""Additional charges staged by operators and saved to the backend in batches."""
import logging
from collections import Counter
from decimal import Decimal
from typing import Any, Iterable, List, Optional

from config import get_settings
from exceptions import NotFoundError, TransientError
from integrations.rental_backend_client import RentalBackendClient
from models.charge import AdditionalCharge
from utils.validation import validate_charge_type, validate_positive_amount

logger = logging.getLogger(__name__)
settings = get_settings()


class AdditionalChargesManager:
    """
    Working list of a booking's additional charges.

    Staged charges live only here until ``save_all`` sends them as one batch.
    The backend assigns charge IDs, so the list is always re-fetched after a
    save or delete instead of trusting local state.
    """

    def __init__(
        self,
        client: RentalBackendClient,
        booking_id: int,
        allowed_types: Optional[Iterable[str]] = None
    ):
        self.client = client
        self.booking_id = booking_id
        self.allowed_types = list(allowed_types or settings.additional_charge_types)
        self.charges: List[AdditionalCharge] = []
        self.loaded = False

    @property
    def staged(self) -> List[AdditionalCharge]:
        return [c for c in self.charges if not c.saved_to_backend]

    @property
    def persisted(self) -> List[AdditionalCharge]:
        return [c for c in self.charges if c.saved_to_backend]

    @property
    def staged_total(self) -> Decimal:
        return sum((c.amount for c in self.staged), Decimal("0"))

    @property
    def persisted_total(self) -> Decimal:
        return sum((c.amount for c in self.persisted), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.persisted_total + self.staged_total

    async def refresh(self) -> List[AdditionalCharge]:
        """
        Reload persisted charges from the backend, keeping staged ones.

        Returns:
            Current charge list (persisted first, then staged)
        """
        persisted = await self.client.get_additional_charges(self.booking_id)
        self.charges = persisted + self.staged
        self.loaded = True
        logger.info(
            f"Loaded {len(persisted)} additional charges for booking {self.booking_id} "
            f"({len(self.staged)} staged)"
        )
        return self.charges

    def stage(self, charge_type: Optional[str], amount: Any) -> AdditionalCharge:
        """
        Add a charge locally without saving it.

        Args:
            charge_type: One of the allowed charge types
            amount: Positive amount

        Returns:
            The staged charge

        Raises:
            ValidationError: If type or amount is invalid
        """
        validated_type = validate_charge_type(charge_type, self.allowed_types)
        validated_amount = validate_positive_amount(amount, "Amount")

        charge = AdditionalCharge(type=validated_type, amount=validated_amount)
        self.charges.append(charge)
        logger.debug(f"Staged {charge!r} for booking {self.booking_id}")
        return charge

    async def remove(self, charge_ref: Any) -> None:
        """
        Remove a charge: locally if staged, via the backend if persisted.

        Args:
            charge_ref: Backend ID of a persisted charge or local ID of a staged one

        Raises:
            NotFoundError: If no such charge is in the list
        """
        charge = self._find(charge_ref)
        if charge is None:
            raise NotFoundError(f"Additional charge {charge_ref} not found")

        if not charge.saved_to_backend:
            self.charges.remove(charge)
            logger.info(f"Removed staged {charge.type} ({charge.amount}) from booking {self.booking_id}")
            return

        try:
            await self.client.delete_additional_charge(charge.id)
        except NotFoundError:
            logger.warning(f"Additional charge {charge.id} was already deleted")

        await self.refresh()

    async def save_all(self) -> List[AdditionalCharge]:
        """
        Save every staged charge in one batch.

        If the save call fails in transit, the list is re-fetched: a batch
        that already landed is adopted instead of being sent again. Charges
        already on the backend are loaded first so they are never mistaken
        for part of the batch.

        Returns:
            Charges newly persisted by this call (empty if nothing was staged)

        Raises:
            TransientError: If the batch could not be confirmed as saved
        """
        if not self.staged:
            logger.info(f"All additional charges for booking {self.booking_id} are already saved")
            return []

        if not self.loaded:
            await self.refresh()

        staged = self.staged
        known_ids = {c.id for c in self.persisted}

        try:
            await self.client.save_additional_charges(
                self.booking_id,
                [c.type for c in staged],
                [c.amount for c in staged],
            )
        except TransientError:
            persisted = await self.client.get_additional_charges(self.booking_id)
            new_charges = [c for c in persisted if c.id not in known_ids]
            if not self._batch_landed(staged, new_charges):
                self.charges = persisted + staged
                raise

            logger.warning(
                f"Save for booking {self.booking_id} failed in transit but the batch was persisted"
            )
            self.charges = persisted
            return new_charges

        persisted = await self.client.get_additional_charges(self.booking_id)
        self.charges = persisted
        new_charges = [c for c in persisted if c.id not in known_ids]
        logger.info(f"Saved {len(staged)} additional charges for booking {self.booking_id}")
        return new_charges

    def _find(self, charge_ref: Any) -> Optional[AdditionalCharge]:
        for charge in self.charges:
            if charge.local_id == charge_ref:
                return charge
            if charge.id is not None and str(charge.id) == str(charge_ref):
                return charge
        return None

    @staticmethod
    def _batch_landed(staged: List[AdditionalCharge], new_charges: List[AdditionalCharge]) -> bool:
        wanted = Counter((c.type, c.amount) for c in staged)
        found = Counter((c.type, c.amount) for c in new_charges)
        return all(found[key] >= count for key, count in wanted.items())
