"""Protocol-based interfaces for Crusade rule components.

This module exports the protocol interfaces, providing a clear contract for
catalog implementations and enabling dependency injection and testing.
"""

from crusade.interfaces.honours import IHonourCatalog

__all__ = [
    "IHonourCatalog",
]
