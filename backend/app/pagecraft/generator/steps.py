"""
Step AST

Every recorded event becomes a Step: a small tagged variant that knows
its title and can render itself in two forms from the same data:

- inline statements for the test script (uses the `page` and `locators`
  fixtures directly)
- a page-object method body, with element lookups hoisted into named
  instance properties and page calls routed through `self.page`

Imported steps carry raw Python source instead of structured fields;
they are rewritten with the `ast` module.
"""

import ast
import json
import keyword
import logging
import re
import textwrap
from typing import Callable, List, Optional, Tuple
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

VISIBLE_TIMEOUT = 15000
VALUE_TIMEOUT = 5000
DRAG_SETTLE_MS = 200
DRAG_NUDGE_PX = 10

# Classes Angular CDK adds to an element while it is being dragged
TRANSIENT_DRAG_CLASSES = (".cdk-drag-dragging", ".cdk-drag-placeholder")

MAX_PROPERTY_WORD_LENGTH = 20

# (selector text, property expression) -> property name
PropertyAllocator = Callable[[str, str], str]


class StepKind(Enum):
    NAVIGATE = "navigate"
    URL_CHANGE = "url_change"
    CLICK = "click"
    FILL = "fill"
    DRAG_SELECT = "drag_select"
    DRAG_DROP = "drag_drop"
    ASSERT_TEXT = "assert_text"
    MANUAL = "manual"
    RAW = "raw"


def literal(value: Optional[str]) -> str:
    """Python string literal for generated code"""
    return json.dumps(value if value is not None else "", ensure_ascii=False)


def method_name_for(title: str) -> str:
    """snake_case method name for a step title"""
    words = re.sub(r"[^A-Za-z0-9]+", " ", title).split()
    name = "_".join(word.lower() for word in words)
    if not name:
        return "custom_step"
    if name[0].isdigit():
        name = f"step_{name}"
    if keyword.iskeyword(name):
        name = f"{name}_step"
    return name


def property_name_for(selector: str) -> str:
    """Instance property name derived from a selector's text"""
    words = [
        word for word in re.sub(r"[^A-Za-z0-9]+", " ", selector).split()
        if len(word) < MAX_PROPERTY_WORD_LENGTH
    ]
    if not words:
        return "element"
    name = "_".join(word.lower() for word in words) + "_element"
    if name[0].isdigit():
        name = f"el_{name}"
    return name


def unwrap_braces(selector: str) -> str:
    """'{#id}' -> '#id' (manual steps mark unfilled selectors with braces)"""
    selector = selector.strip()
    if len(selector) > 2 and selector.startswith("{") and selector.endswith("}"):
        return selector[1:-1].strip()
    return selector


def strip_transient_classes(selector: str) -> str:
    for transient in TRANSIENT_DRAG_CLASSES:
        selector = selector.replace(transient, "")
    return selector.strip()


def names_input_control(selector: Optional[str]) -> bool:
    """Whether a selector points at a control whose value (not text) is asserted"""
    lowered = (selector or "").lower()
    return "input" in lowered or "textarea" in lowered


@dataclass
class ElementRef:
    """
    An element lookup in generated code.

    With a locator id the selector is resolved through the locator store
    at run time and `selector` is only the default; without one the
    selector is used literally.
    """
    selector: str
    locator_id: Optional[str] = None
    from_value: bool = False  # the store's value holds the selector (drag targets)

    def expression(self) -> str:
        if self.locator_id is None:
            return f"page.locator({literal(self.selector)}).first"
        lookup = "get_expected_value" if self.from_value else "get_playwright_selector"
        return f"page.locator(locators.{lookup}({literal(self.locator_id)}, {literal(self.selector)})).first"


@dataclass
class Step:
    """One generated test step"""
    kind: StepKind
    title: str
    scenario_key: str
    element: Optional[ElementRef] = None
    target: Optional[ElementRef] = None
    url: Optional[str] = None
    value: Optional[str] = None
    locator_id: Optional[str] = None
    raw_code: Optional[str] = None
    name: Optional[str] = None  # set when the title-derived name collided

    @property
    def method_name(self) -> str:
        return self.name or method_name_for(self.title)

    @property
    def carries_url(self) -> bool:
        return self.kind in (StepKind.NAVIGATE, StepKind.URL_CHANGE)

    @property
    def inline_only(self) -> bool:
        """Manual steps stay in the script so the user can edit them in place"""
        return self.kind == StepKind.MANUAL


# ==================== Rendering ====================

def _statements(
    step: Step,
    page: str,
    locators: str,
    element: Callable[[ElementRef], str]
) -> List[str]:
    """Statement lines for a structured step; nested lines carry 4-space indents"""
    kind = step.kind

    if kind == StepKind.NAVIGATE:
        return [
            f"{page}.goto({literal(step.url)})",
            f'{page}.wait_for_load_state("networkidle")',
        ]

    if kind == StepKind.URL_CHANGE:
        return [
            f"expect({page}).to_have_url({literal(step.url)})",
            f'{page}.wait_for_load_state("networkidle")',
        ]

    if step.element is None:
        raise ValueError(f"Step kind {kind.value} has no element to render")

    el = element(step.element)
    visible = f"expect({el}).to_be_visible(timeout={VISIBLE_TIMEOUT})"

    if kind in (StepKind.CLICK, StepKind.MANUAL):
        return [visible, f"{el}.click()"]

    if kind == StepKind.DRAG_SELECT:
        return [visible, f"{el}.dblclick()"]

    if kind == StepKind.FILL:
        return [
            visible,
            f"value = {locators}.get_expected_value({literal(step.locator_id)}, {literal(step.value)})",
            "try:",
            f"    {el}.fill(value)",
            f"    expect({el}).to_have_value(value, timeout={VALUE_TIMEOUT})",
            "except (AssertionError, PlaywrightError):",
            f"    {el}.click()",
            f"    {el}.press_sequentially(value)",
        ]

    if kind == StepKind.ASSERT_TEXT:
        assertion = "to_have_value" if names_input_control(step.element.selector) else "to_have_text"
        return [
            visible,
            f"expected = {locators}.get_expected_value({literal(step.locator_id)}, {literal(step.value)})",
            f"expect({el}).{assertion}(expected)",
        ]

    if kind == StepKind.DRAG_DROP:
        target = element(step.target)
        return [
            visible,
            f"{el}.hover()",
            f"{page}.mouse.down()",
            f"box = {el}.bounding_box()",
            "if box:",
            f"    {page}.mouse.move(",
            f'        box["x"] + box["width"] / 2 + {DRAG_NUDGE_PX},',
            f'        box["y"] + box["height"] / 2 + {DRAG_NUDGE_PX},',
            "        steps=2,",
            "    )",
            f"{page}.wait_for_timeout({DRAG_SETTLE_MS})",
            f"expect({target}).to_be_visible(timeout={VISIBLE_TIMEOUT})",
            f"{target}.hover()",
            f"{page}.wait_for_timeout({DRAG_SETTLE_MS})",
            f"{page}.mouse.up()",
        ]

    raise ValueError(f"Cannot render step kind {kind.value}")


def render_inline(step: Step) -> List[str]:
    """Statements for the body of a `with step(...)` block in the test script"""
    bindings: List[str] = []
    names = {}

    def bind(ref: ElementRef) -> str:
        if id(ref) not in names:
            name = "locator" if not names else "target"
            names[id(ref)] = name
            bindings.append(f"{name} = {ref.expression()}")
        return names[id(ref)]

    statements = _statements(step, "page", "locators", bind)
    return bindings + statements


def render_method(step: Step, add_property: PropertyAllocator) -> List[str]:
    """Body lines of the page-object method for a step"""
    if step.kind == StepKind.RAW:
        return transform_raw_code(step.raw_code or "", add_property)

    def hoist(ref: ElementRef) -> str:
        return "self." + add_property(ref.selector, ref.expression())

    return _statements(step, "self.page", "self.locators", hoist)


# ==================== Imported Code ====================

def _is_step_block(node: ast.stmt) -> bool:
    if not isinstance(node, (ast.With, ast.AsyncWith)) or not node.items:
        return False
    call = node.items[0].context_expr
    return (
        isinstance(call, ast.Call)
        and isinstance(call.func, ast.Name)
        and call.func.id == "step"
    )


def unwrap_step(raw_code: str) -> Tuple[str, Optional[List[ast.stmt]]]:
    """
    Parse imported source and strip an outer `with step(...)` block.

    Returns:
        (dedented source, statements) - statements is None when the
        source does not parse
    """
    source = textwrap.dedent(raw_code).strip("\n")
    try:
        tree = ast.parse(source)
    except SyntaxError as e:
        logger.warning(f"Imported step is not valid Python, keeping it verbatim: {e.msg}")
        return source, None

    body = tree.body
    if len(body) == 1 and _is_step_block(body[0]):
        body = body[0].body
    return source, body


class _LocatorHoister(ast.NodeTransformer):
    """page.locator("<literal>") -> self.<property>; page/locators -> self.*"""

    def __init__(self, add_property: PropertyAllocator):
        self.add_property = add_property

    def visit_Call(self, node: ast.Call):
        func = node.func
        if (
            isinstance(func, ast.Attribute)
            and func.attr == "locator"
            and isinstance(func.value, ast.Name)
            and func.value.id == "page"
            and len(node.args) == 1
            and not node.keywords
            and isinstance(node.args[0], ast.Constant)
            and isinstance(node.args[0].value, str)
        ):
            selector = node.args[0].value
            name = self.add_property(selector, f"page.locator({literal(selector)})")
            return ast.copy_location(_self_attribute(name), node)
        return self.generic_visit(node)

    def visit_Name(self, node: ast.Name):
        if node.id in ("page", "locators") and isinstance(node.ctx, ast.Load):
            return ast.copy_location(_self_attribute(node.id), node)
        return node


def _self_attribute(name: str) -> ast.Attribute:
    return ast.Attribute(value=ast.Name(id="self", ctx=ast.Load()), attr=name, ctx=ast.Load())


def transform_raw_code(raw_code: str, add_property: PropertyAllocator) -> List[str]:
    """
    Turn an imported step into a method body.

    Source that does not parse is passed through unmodified.
    """
    source, body = unwrap_step(raw_code)
    if body is None:
        return source.splitlines()
    if not body:
        return ["pass"]

    hoister = _LocatorHoister(add_property)
    lines: List[str] = []
    for statement in body:
        rewritten = ast.fix_missing_locations(hoister.visit(statement))
        lines.extend(ast.unparse(rewritten).splitlines())
    return lines
