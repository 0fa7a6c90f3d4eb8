"""
Category Aggregation

Pure functions over a transaction list. Nothing here mutates its input;
every call builds new lists, so the same input always gives the same
output.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional, Union

from gigledger.models.ledger import (
    ALL_CATEGORIES,
    CategoryGroup,
    CategoryTotal,
    Transaction,
    TransactionType,
)


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _name_key(name: str) -> tuple[str, str]:
    return name.casefold(), name


def sort_newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest createdAt first; undated transactions go last."""
    return sorted(
        transactions,
        key=lambda t: t.created_at or _OLDEST,
        reverse=True,
    )


def _of_type(
    transactions: Iterable[Transaction],
    transaction_type: Union[TransactionType, str],
) -> list[Transaction]:
    wanted = TransactionType(transaction_type)
    return [t for t in transactions if t.type == wanted]


def group_by_category(
    transactions: Iterable[Transaction],
    transaction_type: Union[TransactionType, str],
    category_filter: Optional[str] = ALL_CATEGORIES,
) -> list[CategoryGroup]:
    """
    Group one type of transaction by category.

    Args:
        transactions: Transactions of any type
        transaction_type: credit or debit
        category_filter: A category name, or "All"/None for no filter

    Returns:
        Groups sorted by category name, each holding its transactions
        newest first. Categories with no matching transactions are absent.
    """
    grouped: dict[str, list[Transaction]] = {}
    for transaction in _of_type(transactions, transaction_type):
        name = transaction.category_name
        if category_filter not in (None, ALL_CATEGORIES) and name != category_filter:
            continue
        grouped.setdefault(name, []).append(transaction)

    return [
        CategoryGroup(category=name, transactions=sort_newest_first(grouped[name]))
        for name in sorted(grouped, key=_name_key)
    ]


def category_totals(
    transactions: Iterable[Transaction],
    transaction_type: Union[TransactionType, str],
) -> list[CategoryTotal]:
    """Pie chart data: amount per category, largest first."""
    totals: dict[str, Decimal] = {}
    for transaction in _of_type(transactions, transaction_type):
        name = transaction.category_name
        totals[name] = totals.get(name, Decimal("0")) + transaction.amount

    ordered = sorted(totals.items(), key=lambda item: _name_key(item[0]))
    ordered.sort(key=lambda item: item[1], reverse=True)
    return [CategoryTotal(name=name, value=value) for name, value in ordered]


def category_options(
    transactions: Iterable[Transaction],
    transaction_type: Union[TransactionType, str],
) -> list[str]:
    """Choices for the category filter: "All" followed by the type's categories."""
    names = {t.category_name for t in _of_type(transactions, transaction_type)}
    return [ALL_CATEGORIES] + sorted(names, key=_name_key)
