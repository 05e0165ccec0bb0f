"""On-demand CSV and JSON report exports for client-side download."""

from __future__ import annotations

import csv
import datetime as dt
import json
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from . import aggregation as agg
from .models import Transaction

CSV_FILENAME = "transactions.csv"
CSV_COLUMNS = ["Date", "Type", "Category", "Amount", "Notes"]


def transactions_csv(transactions: Sequence[Transaction]) -> str:
    """Render transactions as CSV with every field quoted."""
    frame = pd.DataFrame(
        [
            {
                "Date": txn.date.isoformat(),
                "Type": txn.kind,
                "Category": txn.category,
                "Amount": str(txn.amount),
                "Notes": txn.notes or "",
            }
            for txn in transactions
        ],
        columns=CSV_COLUMNS,
    )
    return frame.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def report_filename(start: dt.date, end: dt.date) -> str:
    return f"financial-report-{start.isoformat()}-to-{end.isoformat()}.json"


def _transaction_record(txn: Transaction) -> Dict[str, Any]:
    return {
        "id": txn.id,
        "user_id": txn.user_id,
        "group_id": txn.group_id,
        "amount": txn.amount,
        "type": txn.kind,
        "category": txn.category,
        "date": txn.date.isoformat(),
        "notes": txn.notes,
        "created_at": txn.created_at,
    }


def report_bundle(
    transactions: Sequence[Transaction],
    start: dt.date,
    end: dt.date,
    months: int = agg.DEFAULT_TREND_MONTHS,
    today: Optional[dt.date] = None,
) -> Dict[str, Any]:
    """Summary totals, trend series, category breakdown and raw rows."""
    totals = agg.period_totals(transactions)
    return {
        "summary": {
            "totalIncome": totals.income,
            "totalExpenses": totals.expenses,
            "netSavings": totals.savings,
            "dateRange": {"start": start.isoformat(), "end": end.isoformat()},
        },
        "monthlyTrends": [
            {
                "month": point.label,
                "income": point.income,
                "expenses": point.expenses,
                "savings": point.savings,
            }
            for point in agg.monthly_trend(transactions, months=months, today=today)
        ],
        "categoryBreakdown": [
            {
                "name": row.category,
                "value": row.amount,
                "percentage": round(row.percentage, 2),
                "transactions": row.transaction_count,
            }
            for row in agg.category_breakdown(transactions)
        ],
        "transactions": [_transaction_record(txn) for txn in transactions],
    }


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def report_json(bundle: Dict[str, Any]) -> str:
    return json.dumps(bundle, indent=2, default=_json_default)
