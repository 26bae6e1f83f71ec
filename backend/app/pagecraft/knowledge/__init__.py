"""
Locator Knowledge

Persistent, keyed registry of element locators shared by the
code synthesizer and the generated page objects.
"""

from .locator_store import LocatorStore, LocatorDef

__all__ = [
    "LocatorStore",
    "LocatorDef"
]
