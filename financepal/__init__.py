"""Top-level package for FinancePal expense analysis.

The primary modules are:

* ``expense_analysis`` - monthly/yearly and category aggregation
* ``analysis_session`` - fetch-and-aggregate state for one user
* ``db`` - SQLite storage of expenses and budgets
* ``budgets`` - monthly budget lookups and spent-vs-budget tables
* ``visualization`` - functions that generate Plotly figures
* ``dashboard`` - the Streamlit page that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run financepal/Home.py
```

The Streamlit page is not imported here so the analysis modules can be
used without starting a UI.
"""

from . import expense_analysis  # noqa: F401  # re-exported for convenience
from . import visualization  # noqa: F401  # re-exported for convenience
from .expense_analysis import aggregate, compute_monthly_change  # noqa: F401
from .models import ExpenseRecord  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "expense_analysis",
    "visualization",
    "aggregate",
    "compute_monthly_change",
    "ExpenseRecord",
]
