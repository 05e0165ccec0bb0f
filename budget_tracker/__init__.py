"""Top-level package for the Budget Tracker.

The primary modules are:

* ``repository`` – data access for transactions, budgets and groups
* ``aggregation`` – totals, budget utilization, trends and group shares
* ``visualization`` – functions that generate Plotly figures and tables

To run the app from the command line you can execute:

```bash
python run_app.py
```

or ``streamlit run budget_tracker/Home.py``.
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import visualization  # noqa: F401  # re-exported for convenience

__all__ = ["aggregation", "visualization"]
