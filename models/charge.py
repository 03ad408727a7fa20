"""Charge models: operator-entered additional charges and records decoded from
a booking's ``additionalChargesDetails`` string."""
from decimal import Decimal
from typing import Annotated, Any, Dict, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from constants import EXTENSION_TOTAL_TOLERANCE


class AdditionalCharge(BaseModel):
    """Ad-hoc charge line item (challan, damage, ...) tied to one booking."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None  # assigned by the backend on save
    local_id: str = Field(default_factory=lambda: uuid4().hex)
    type: str = Field(alias="chargeType", min_length=1)
    amount: Decimal = Field(gt=0)
    saved_to_backend: bool = Field(default=False, alias="savedToBackend")

    @classmethod
    def from_backend(cls, data: Dict[str, Any]) -> "AdditionalCharge":
        """Build a persisted charge from a backend payload."""
        return cls(
            id=data.get("id"),
            type=data.get("chargeType") or data.get("type") or "",
            amount=Decimal(str(data.get("amount", 0))),
            saved_to_backend=True,
        )

    def __repr__(self):
        state = "saved" if self.saved_to_backend else "staged"
        return f"<AdditionalCharge(type='{self.type}', amount={self.amount}, {state})>"


class ExtensionRecord(BaseModel):
    """Trip extension decoded from ``Extend Trip <from> -> <to>: base=..., gst(5%)=..., total=...``."""

    kind: Literal["extension"] = "extension"
    from_date: str
    to_date: str
    base_amount: Decimal
    gst_amount: Decimal
    total_amount: Decimal

    @model_validator(mode="after")
    def _total_matches_parts(self) -> "ExtensionRecord":
        if abs(self.total_amount - (self.base_amount + self.gst_amount)) >= EXTENSION_TOTAL_TOLERANCE:
            raise ValueError(
                f"total {self.total_amount} != base {self.base_amount} + gst {self.gst_amount}"
            )
        return self


class ManualChargeRecord(BaseModel):
    """One ``name=amount`` pair from a ``Manual charges:`` entry. Never taxed."""

    kind: Literal["manual_charge"] = "manual_charge"
    name: str
    amount: Decimal

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("manual charge name is empty")
        return value


ChargeDetailEntry = Annotated[
    Union[ExtensionRecord, ManualChargeRecord],
    Field(discriminator="kind"),
]


class ChargeDetails(BaseModel):
    """Decoded ``additionalChargesDetails``: extensions and manual charges in wire order."""

    entries: list[ChargeDetailEntry] = Field(default_factory=list)

    @property
    def extensions(self) -> list[ExtensionRecord]:
        return [e for e in self.entries if isinstance(e, ExtensionRecord)]

    @property
    def manual_charges(self) -> list[ManualChargeRecord]:
        return [e for e in self.entries if isinstance(e, ManualChargeRecord)]
