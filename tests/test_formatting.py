from decimal import Decimal

import pytest

from budget_tracker.formatting import escape_currency_for_markdown, format_currency, format_percent
from budget_tracker.ui import progress_status


def test_format_currency_uses_symbol_and_separators():
    assert format_currency(Decimal('1234.5'), symbol='₹') == '₹1,234.50'
    assert format_currency(-20, symbol='$') == '-$20.00'
    assert format_currency(Decimal('7'), include_sign=False) == '7.00'


def test_escape_currency_for_markdown(monkeypatch):
    monkeypatch.setattr('budget_tracker.config.CURRENCY_SYMBOL', '$')
    assert escape_currency_for_markdown(5) == '\\$5.00'


def test_format_percent():
    assert format_percent(83.3333) == '83.3%'


@pytest.mark.parametrize(
    'percent, colour',
    [(100.0, 'red'), (85.0, 'orange'), (80.0, 'orange'), (60.0, 'yellow'), (59.9, 'green'), (0.0, 'green')],
)
def test_progress_status_thresholds(percent, colour):
    assert progress_status(percent)[0] == colour
