"""
Gig and Milestone Models for GigLedger

A gig is a client engagement. Milestones are its payable parts, each
with its own status and dates. Gig status decides the board column.

DESIGN DECISION: Status values use the backend's wire strings
("In Progress", "To Do") so records round-trip without translation.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from gigledger.models.common import LenientTimestamp, day_key


# =============================================================================
# ENUMS
# =============================================================================

def _squash(value: str) -> str:
    return "".join(value.split()).lower()


class GigStatus(str, Enum):
    """
    Gig lifecycle states, one board column each.

    The order here is the left-to-right column order.
    """
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ARCHIVED = "Archived"

    @classmethod
    def parse(cls, value) -> Optional["GigStatus"]:
        """Match a column name loosely ('InProgress', 'in progress'), None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        wanted = _squash(value)
        for status in cls:
            if _squash(status.value) == wanted:
                return status
        return None


class MilestoneStatus(str, Enum):
    """Milestone progress states."""
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    BLOCKED = "Blocked"
    DONE = "Done"

    @classmethod
    def parse(cls, value) -> Optional["MilestoneStatus"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        wanted = _squash(value)
        for status in cls:
            if _squash(status.value) == wanted:
                return status
        return None


# =============================================================================
# RECORDS
# =============================================================================

class Gig(BaseModel):
    """A gig as returned by GET /gigs/user."""
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
    )
    title: str = ""
    description: Optional[str] = None
    client_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("clientName", "client_name"),
    )
    total_value: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("totalValue", "total_value"),
    )
    status: GigStatus = GigStatus.OPEN
    due_date: LenientTimestamp = Field(
        default=None,
        validation_alias=AliasChoices("dueDate", "due_date"),
    )

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v):
        if v is None:
            return GigStatus.OPEN
        parsed = GigStatus.parse(v)
        if parsed is None:
            raise ValueError(f"Unknown gig status: {v!r}")
        return parsed

    @field_validator('total_value', mode='before')
    @classmethod
    def default_value(cls, v):
        return Decimal("0") if v in (None, "") else v

    @property
    def display_title(self) -> str:
        return self.title or "Untitled gig"


class Milestone(BaseModel):
    """A milestone as returned by GET /milestones/gig/:gigId."""
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
    )
    gig_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("gigId", "gig_id"),
    )
    title: str = ""
    description: Optional[str] = None
    payment_amount: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("paymentAmount", "payment_amount"),
    )
    status: MilestoneStatus = MilestoneStatus.TODO
    start_date: LenientTimestamp = Field(
        default=None,
        validation_alias=AliasChoices("startDate", "start_date"),
    )
    due_date: LenientTimestamp = Field(
        default=None,
        validation_alias=AliasChoices("dueDate", "due_date"),
    )

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, v):
        if v is None:
            return MilestoneStatus.TODO
        parsed = MilestoneStatus.parse(v)
        if parsed is None:
            raise ValueError(f"Unknown milestone status: {v!r}")
        return parsed

    @field_validator('payment_amount', mode='before')
    @classmethod
    def default_amount(cls, v):
        return Decimal("0") if v in (None, "") else v

    @property
    def is_done(self) -> bool:
        return self.status == MilestoneStatus.DONE

    @property
    def due_day(self) -> Optional[str]:
        """Calendar key of the due date (UTC), None when there is none."""
        return day_key(self.due_date)


# =============================================================================
# FORM INPUT
# =============================================================================

class GigDraft(BaseModel):
    """Create/edit form for a gig."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    client_name: Optional[str] = Field(default=None, max_length=200)
    total_value: Decimal = Field(default=Decimal("0"), ge=0)
    status: GigStatus = GigStatus.OPEN
    due_date: Optional[date] = None

    @classmethod
    def from_gig(cls, gig: Gig) -> "GigDraft":
        return cls(
            title=gig.title or "Untitled gig",
            description=gig.description,
            client_name=gig.client_name,
            total_value=gig.total_value,
            status=gig.status,
            due_date=gig.due_date.date() if gig.due_date else None,
        )

    def to_payload(self) -> dict:
        payload = {
            "title": self.title,
            "description": self.description or "",
            "clientName": self.client_name or "",
            "totalValue": float(self.total_value),
            "status": self.status.value,
        }
        if self.due_date:
            payload["dueDate"] = self.due_date.isoformat()
        return payload


class MilestoneDraft(BaseModel):
    """
    Create/edit form for a milestone.

    The start date may not come after the due date. This is checked
    only here, at input time.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    payment_amount: Decimal = Field(default=Decimal("0"), ge=0)
    status: MilestoneStatus = MilestoneStatus.TODO
    start_date: Optional[date] = None
    due_date: Optional[date] = None

    @model_validator(mode='after')
    def validate_dates(self) -> 'MilestoneDraft':
        if self.start_date and self.due_date and self.start_date > self.due_date:
            raise ValueError("Start date cannot be after due date")
        return self

    @classmethod
    def from_milestone(cls, milestone: Milestone) -> "MilestoneDraft":
        """Form pre-fill from a stored milestone. Stored dates are not re-checked."""
        return cls.model_construct(
            title=milestone.title or "Milestone",
            description=milestone.description,
            payment_amount=milestone.payment_amount,
            status=milestone.status,
            start_date=milestone.start_date.date() if milestone.start_date else None,
            due_date=milestone.due_date.date() if milestone.due_date else None,
        )

    def to_payload(self) -> dict:
        payload = {
            "title": self.title,
            "description": self.description or "",
            "paymentAmount": float(self.payment_amount),
            "status": self.status.value,
        }
        if self.start_date:
            payload["startDate"] = self.start_date.isoformat()
        if self.due_date:
            payload["dueDate"] = self.due_date.isoformat()
        return payload
