"""Top-level package for the Payoff Dashboard calculation engine.

The primary modules are:

* ``category_rules`` - layered mapping of transactions to budget categories
* ``data_processing`` - reading, normalizing and deduplicating exports
* ``budgets`` - spending aggregation, pace status and weekly rollover
* ``debts`` / ``milestones`` - balance tracking and payoff progress
* ``interest`` - minimum-payment vs. aggressive payoff projections
* ``streaks`` / ``income`` / ``data_export`` - supporting state

State lives in a keyed store (``storage.JsonFileStore`` in the data
directory, or ``storage.MemoryStore`` in tests) passed to each tracker.
"""

from . import budgets  # noqa: F401  # re-exported for convenience
from . import category_rules  # noqa: F401
from . import data_processing  # noqa: F401
from . import debts  # noqa: F401
from . import interest  # noqa: F401
from . import storage  # noqa: F401

__all__ = ["budgets", "category_rules", "data_processing", "debts", "interest", "storage"]
