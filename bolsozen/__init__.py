"""Top-level package for the BolsoZen budgeting dashboard.

The calculation core lives in pure modules:

* ``budget`` - monthly totals and per-category progress
* ``savings`` - savings-rate bands and the budget simulator
* ``age_of_money`` - FIFO age of the money being spent
* ``goals`` - goal progress, due dates and validation
* ``currency`` - Brazilian Real parsing and formatting

``db`` holds the SQLite store, ``analytics`` ties the store to the core
and ``Home.py`` plus ``pages/`` form the Streamlit app:

```bash
python run_dashboard.py
```
"""

from . import budget  # noqa: F401  # re-exported for convenience
from . import goals  # noqa: F401  # re-exported for convenience
from . import savings  # noqa: F401  # re-exported for convenience

__version__ = "0.1.0"

__all__ = ["budget", "goals", "savings"]
