"""
Ledger Data Models for GigLedger

These models describe the money side of the app: transactions, the
balance, exchange rates and the shapes produced for charts.

DESIGN DECISION: The backend owns every ledger record. These models are
read/write copies that live only as long as a view or a form needs them,
so they accept what the backend sends (`_id` or `id`, camelCase keys) and
produce exactly the payloads it expects.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from gigledger.models.common import LenientTimestamp, day_key


UNCATEGORIZED = "Uncategorized"
ALL_CATEGORIES = "All"

CENT = Decimal("0.01")


class UnknownCurrencyError(ValueError):
    """A currency code has no rate in the fetched rate table."""
    pass


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Transaction polarity: credit is income, debit is expense."""
    CREDIT = "credit"
    DEBIT = "debit"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A transaction as returned by the backend.

    Amounts are in USD. Conversion to the display currency happens at
    render time through ExchangeRates.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
        description="Backend identifier"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in USD"
    )
    tax: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Tax withheld on this transaction"
    )
    tax_percentage: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("taxPercentage", "tax_percentage"),
    )
    description: Optional[str] = None
    category: Optional[str] = None
    created_at: LenientTimestamp = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at"),
    )

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def category_name(self) -> str:
        """Category used for grouping (blank categories are Uncategorized)."""
        return self.category or UNCATEGORIZED

    @property
    def total(self) -> Decimal:
        """Amount after tax: credits lose the tax, debits add it."""
        if self.type == TransactionType.CREDIT:
            return self.amount - self.tax
        return self.amount + self.tax

    @property
    def day(self) -> Optional[str]:
        """ISO day of creation (UTC)."""
        return day_key(self.created_at)


class TransactionDraft(BaseModel):
    """
    A transaction being entered in the log/edit form.

    Validated before any request is made. Tax is derived here because
    the form shows it before saving.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = TransactionType.DEBIT
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount in USD, must be positive"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
    )

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionDraft":
        """Start an edit form from an existing transaction."""
        return cls(
            type=transaction.type,
            amount=transaction.amount,
            description=transaction.description,
            category=transaction.category,
        )

    def tax_for(self, tax_percentage: Decimal) -> tuple[Decimal, Decimal]:
        """
        Return (tax, tax_percentage) for this draft.

        Only income is taxed. Debits always carry zero tax.
        """
        if self.type == TransactionType.DEBIT:
            return Decimal("0"), Decimal("0")
        pct = Decimal(str(tax_percentage))
        tax = (self.amount * pct / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
        return tax, pct

    def to_payload(self, tax_percentage: Decimal) -> dict:
        """Build the JSON body for POST/PUT /transactions."""
        tax, pct = self.tax_for(tax_percentage)
        payload = {
            "type": self.type.value,
            "amount": float(self.amount),
            "tax": float(tax),
            "taxPercentage": float(pct),
            "description": self.description or "",
        }
        if self.category:
            payload["category"] = self.category
        return payload


class Balance(BaseModel):
    """Current balance, computed by the backend."""
    model_config = ConfigDict(extra="ignore")

    balance: Decimal = Decimal("0")

    @field_validator('balance', mode='before')
    @classmethod
    def default_missing(cls, v):
        return Decimal("0") if v is None else v


# =============================================================================
# CURRENCY
# =============================================================================

class ExchangeRates(BaseModel):
    """
    Conversion factors relative to USD, as served by GET /rates.
    """
    model_config = ConfigDict(extra="ignore")

    base: str = "USD"
    rates: dict[str, Decimal] = Field(default_factory=dict)

    @field_validator('rates', mode='before')
    @classmethod
    def upper_codes(cls, v):
        if isinstance(v, dict):
            return {str(code).upper(): rate for code, rate in v.items()}
        return v

    @property
    def codes(self) -> list[str]:
        """All known currency codes, USD included."""
        return sorted(set(self.rates) | {self.base})

    def rate_for(self, code: str) -> Decimal:
        code = code.upper()
        if code == self.base:
            return Decimal("1")
        if code not in self.rates:
            raise UnknownCurrencyError(f"No exchange rate for {code}")
        return Decimal(str(self.rates[code]))

    def convert(self, amount_usd: Decimal, code: str) -> Decimal:
        """Convert a USD amount to the given currency."""
        return (Decimal(str(amount_usd)) * self.rate_for(code)).quantize(
            CENT, rounding=ROUND_HALF_UP
        )


# =============================================================================
# CHART / SUMMARY SHAPES
# =============================================================================

class CategoryTotal(BaseModel):
    """One slice of a category distribution chart."""

    name: str
    value: Decimal


class CategoryGroup(BaseModel):
    """Transactions of one category, newest first."""

    category: str
    transactions: list[Transaction] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((t.amount for t in self.transactions), Decimal("0"))

    @property
    def count(self) -> int:
        return len(self.transactions)


class DailyActivity(BaseModel):
    """Credits and debits of one day, used by the history bar chart."""

    day: str = Field(..., description="ISO day (YYYY-MM-DD)")
    credits: Decimal = Decimal("0")
    debits: Decimal = Decimal("0")

    @property
    def label(self) -> str:
        """Short chart label, e.g. 'Mar 4'."""
        parsed = datetime.strptime(self.day, "%Y-%m-%d")
        return f"{parsed.strftime('%b')} {parsed.day}"


class LedgerSnapshot(BaseModel):
    """Balance and transactions as loaded together, newest transaction first."""

    balance: Decimal = Decimal("0")
    transactions: list[Transaction] = Field(default_factory=list)
