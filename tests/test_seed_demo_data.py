import datetime as dt
import importlib.util
from pathlib import Path

from budget_tracker.db import SqliteClient
from budget_tracker.forms import SignInDraft
from budget_tracker.repository import BudgetRepository

SCRIPT_PATH = Path(__file__).resolve().parents[1] / 'scripts' / 'seed_demo_data.py'


def _load_script():
    spec = importlib.util.spec_from_file_location('seed_demo_data_test', SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_seed_creates_account_rows_and_group(tmp_path):
    module = _load_script()
    client = SqliteClient(tmp_path / 'seed.db')
    client.init_db()
    repo = BudgetRepository(client)
    today = dt.date(2024, 6, 15)

    count = module.seed(repo, 'demo@example.com', 'demo1234', 'Demo User', today)

    session = repo.sign_in(SignInDraft(email='demo@example.com', password='demo1234'))
    assert count == len(module.SAMPLE_TRANSACTIONS) + len(module.SAMPLE_BUDGETS)
    assert len(repo.list_budgets(session, month=6, year=2024)) == len(module.SAMPLE_BUDGETS)
    assert [g.name for g in repo.list_groups(session)] == ['Flatmates']


def test_seed_twice_signs_in_and_skips_existing_budgets(tmp_path):
    module = _load_script()
    client = SqliteClient(tmp_path / 'seed.db')
    client.init_db()
    repo = BudgetRepository(client)
    today = dt.date(2024, 6, 15)

    module.seed(repo, 'demo@example.com', 'demo1234', 'Demo User', today)
    count = module.seed(repo, 'demo@example.com', 'demo1234', 'Demo User', today)

    assert count == len(module.SAMPLE_TRANSACTIONS)
