"""
Backend Resource APIs

One small class per backend resource. Each method is async, goes through
BackendClient.acall() and returns a RequestResult whose data is already
parsed into models.

DESIGN DECISION: List responses are parsed record by record. A record
the models reject is logged and skipped, so one malformed gig does not
blank the whole board.
"""

from datetime import date
from typing import Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from gigledger.models.gigs import Gig, GigDraft, Milestone, MilestoneDraft
from gigledger.models.ledger import Balance, ExchangeRates, Transaction, TransactionDraft
from gigledger.models.results import RequestResult
from gigledger.models.user import LoginForm, LoginResponse, RegistrationForm, User
from gigledger.services.backend.client import EXPECT_BYTES, BackendClient


logger = structlog.get_logger("gigledger.backend")

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_items(model: Type[ModelT], data, kind: str) -> list[ModelT]:
    """
    Parse a JSON array into models, skipping records that fail validation.

    Raises:
        ValueError: If the payload is not an array at all
    """
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"expected a list of {kind}, got {type(data).__name__}")
    items = []
    for index, raw in enumerate(data):
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "skipped_invalid_record",
                kind=kind,
                index=index,
                errors=e.error_count(),
            )
    return items


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class UserApi:
    """Accounts: /users and /auth."""

    def __init__(self, client: BackendClient):
        self._client = client

    async def register(self, form: RegistrationForm) -> RequestResult:
        return await self._client.acall(
            "POST", "/users/register",
            json_body=form.model_dump(),
            authenticated=False,
        )

    async def login(self, form: LoginForm) -> RequestResult:
        """POST /users/login. Data is a LoginResponse."""
        result = await self._client.acall(
            "POST", "/users/login",
            json_body=form.model_dump(),
            authenticated=False,
        )
        return result.map(LoginResponse.model_validate)

    async def me(self) -> RequestResult:
        result = await self._client.acall("GET", "/users/me")
        return result.map(User.model_validate)

    async def get(self, user_id: str) -> RequestResult:
        result = await self._client.acall("GET", f"/users/{user_id}")
        return result.map(User.model_validate)

    async def update(self, user_id: str, username: str, email: str) -> RequestResult:
        result = await self._client.acall(
            "PUT", f"/users/{user_id}",
            json_body={"username": username, "email": email},
        )
        return result.map(User.model_validate)

    async def delete(self, user_id: str) -> RequestResult:
        return await self._client.acall("DELETE", f"/users/{user_id}")

    def oauth_url(self) -> str:
        """Where the browser goes to start Google sign in."""
        return self._client.url_for("/auth/google")


class TransactionApi:
    """Transactions, balance and the PDF report."""

    def __init__(self, client: BackendClient):
        self._client = client

    async def balance(self) -> RequestResult:
        result = await self._client.acall("GET", "/balances/user")
        return result.map(lambda data: Balance.model_validate(data or {}))

    async def list(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> RequestResult:
        """GET /transactions/user, optionally limited to a date range."""
        result = await self._client.acall(
            "GET", "/transactions/user",
            params={"start_date": _iso(start_date), "end_date": _iso(end_date)},
        )
        return result.map(lambda data: parse_items(Transaction, data, "transactions"))

    async def create(self, draft: TransactionDraft, tax_percentage) -> RequestResult:
        return await self._client.acall(
            "POST", "/transactions",
            json_body=draft.to_payload(tax_percentage),
        )

    async def update(
        self,
        transaction_id: str,
        draft: TransactionDraft,
        tax_percentage,
    ) -> RequestResult:
        return await self._client.acall(
            "PUT", f"/transactions/{transaction_id}",
            json_body=draft.to_payload(tax_percentage),
        )

    async def delete(self, transaction_id: str) -> RequestResult:
        return await self._client.acall("DELETE", f"/transactions/{transaction_id}")

    async def upload_csv(self, filename: str, content: bytes, mime_type: str) -> RequestResult:
        """POST the original file bytes as the multipart `file` field."""
        return await self._client.acall(
            "POST", "/transactions/uploadCSV",
            files={"file": (filename, content, mime_type or "text/csv")},
        )

    async def report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> RequestResult:
        """GET /transactions/report. Data is the PDF bytes."""
        return await self._client.acall(
            "GET", "/transactions/report",
            params={"startDate": _iso(start_date), "endDate": _iso(end_date)},
            expect=EXPECT_BYTES,
        )


class GigApi:
    def __init__(self, client: BackendClient):
        self._client = client

    async def list(self) -> RequestResult:
        result = await self._client.acall("GET", "/gigs/user")
        return result.map(lambda data: parse_items(Gig, data, "gigs"))

    async def create(self, draft: GigDraft) -> RequestResult:
        result = await self._client.acall("POST", "/gigs", json_body=draft.to_payload())
        return result.map(_optional(Gig))

    async def update(self, gig_id: str, payload: dict) -> RequestResult:
        """PUT /gigs/:id with a full or partial body."""
        result = await self._client.acall("PUT", f"/gigs/{gig_id}", json_body=payload)
        return result.map(_optional(Gig))

    async def delete(self, gig_id: str) -> RequestResult:
        return await self._client.acall("DELETE", f"/gigs/{gig_id}")


class MilestoneApi:
    def __init__(self, client: BackendClient):
        self._client = client

    async def list_for_gig(self, gig_id: str) -> RequestResult:
        result = await self._client.acall("GET", f"/milestones/gig/{gig_id}")
        return result.map(lambda data: parse_items(Milestone, data, "milestones"))

    async def create(self, gig_id: str, draft: MilestoneDraft) -> RequestResult:
        result = await self._client.acall(
            "POST", f"/milestones/gig/{gig_id}",
            json_body=draft.to_payload(),
        )
        return result.map(_optional(Milestone))

    async def update(self, milestone_id: str, payload: dict) -> RequestResult:
        result = await self._client.acall(
            "PUT", f"/milestones/{milestone_id}",
            json_body=payload,
        )
        return result.map(_optional(Milestone))

    async def delete(self, milestone_id: str) -> RequestResult:
        return await self._client.acall("DELETE", f"/milestones/{milestone_id}")

    async def invoice(
        self,
        milestone_id: str,
        client_name: str,
        freelancer_name: str,
    ) -> RequestResult:
        """GET /milestones/:id/invoice. Data is the PDF bytes."""
        return await self._client.acall(
            "GET", f"/milestones/{milestone_id}/invoice",
            params={"clientName": client_name, "freelancerName": freelancer_name},
            expect=EXPECT_BYTES,
        )


class RatesApi:
    def __init__(self, client: BackendClient):
        self._client = client

    async def get(self) -> RequestResult:
        """GET /rates. Accepts either {base, rates} or a bare code->rate map."""
        result = await self._client.acall("GET", "/rates")
        return result.map(_parse_rates)


def _parse_rates(data) -> ExchangeRates:
    if isinstance(data, dict) and isinstance(data.get("rates"), dict):
        return ExchangeRates.model_validate(data)
    if isinstance(data, dict):
        return ExchangeRates(rates=data)
    raise ValueError("rates response is not an object")


def _optional(model: Type[ModelT]):
    """Parse a saved record if the backend echoed one back."""
    def parse(data):
        if isinstance(data, dict) and data:
            return model.model_validate(data)
        return None
    return parse
