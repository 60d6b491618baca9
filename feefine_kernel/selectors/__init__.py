"""Read-only implementations of the fee/fine lookup ports."""

from feefine_kernel.selectors.feefine_selector import FeeFineSelector
from feefine_kernel.selectors.memory_selector import (
    FixedTimezone,
    InMemoryInventory,
    InMemoryLedger,
    InMemoryPatronDirectory,
)

__all__ = [
    "FeeFineSelector",
    "FixedTimezone",
    "InMemoryInventory",
    "InMemoryLedger",
    "InMemoryPatronDirectory",
]
