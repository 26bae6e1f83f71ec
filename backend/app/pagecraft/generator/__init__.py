"""
Code generation: step AST, page-object descriptors and the synthesizer
that writes pytest-playwright scripts from recorded events.
"""

from .steps import Step, StepKind, ElementRef
from .page_object import PageObjectDescriptor
from .reusable_steps import TestScenario, TestStep, get_existing_scenarios
from .code_synthesizer import CodeSynthesizer, GeneratedResult, PageObjectResult

__all__ = [
    "Step",
    "StepKind",
    "ElementRef",
    "PageObjectDescriptor",
    "TestScenario",
    "TestStep",
    "get_existing_scenarios",
    "CodeSynthesizer",
    "GeneratedResult",
    "PageObjectResult"
]
