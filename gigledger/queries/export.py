"""Export of the displayed transactions as a CSV file."""

import csv
import io
from typing import Iterable

from gigledger.models.ledger import Transaction


EXPORT_COLUMNS = [
    "date",
    "type",
    "category",
    "description",
    "amount",
    "tax",
    "taxPercentage",
    "total",
]


def transactions_to_csv(transactions: Iterable[Transaction]) -> bytes:
    """
    Serialize transactions in the order given.

    `total` is amount minus tax for credits and amount plus tax for debits,
    the same figure the transaction table shows.
    """
    buffer = io.StringIO(newline="")
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for transaction in transactions:
        writer.writerow({
            "date": transaction.created_at.isoformat() if transaction.created_at else "",
            "type": transaction.type.value,
            "category": transaction.category_name,
            "description": transaction.description or "",
            "amount": f"{transaction.amount:.2f}",
            "tax": f"{transaction.tax:.2f}",
            "taxPercentage": f"{transaction.tax_percentage.normalize():f}",
            "total": f"{transaction.total:.2f}",
        })
    return buffer.getvalue().encode("utf-8")
