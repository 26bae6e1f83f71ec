"""
Core selector resolution: the Python resolver and the scripts that
run the same pipeline inside the recorded page.
"""

from .selector_resolver import SelectorResolver, SelectorStrategy, ResolvedSelector
from .page_scripts import RECORDER_INIT_SCRIPT, RESOLVER_JS

__all__ = [
    "SelectorResolver",
    "SelectorStrategy",
    "ResolvedSelector",
    "RECORDER_INIT_SCRIPT",
    "RESOLVER_JS"
]
