"""
Page Object Descriptors

A generated page object is kept as a structured descriptor (class name,
hoisted properties, methods) and its source is always rendered fresh
from the descriptor. Existing files are read back with a light
structural parse (the `ast` module), so methods and properties written
on earlier runs survive and are never duplicated.
"""

import ast
import logging
import re
import textwrap
from pathlib import Path
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from .steps import property_name_for

logger = logging.getLogger(__name__)

# Scenario-key words that only describe where a step came from
NOISE_WORDS = {"test", "py", "spec"}

# Attributes bound by the generated constructor itself
RESERVED_ATTRIBUTES = ("page", "locators")

PAGE_OBJECT_HEADER = '''"""
{class_name}: generated page object.

Element lookups resolve through the locator store, so editing the
locator file re-targets these methods without regenerating them.
"""

from playwright.sync_api import Error as PlaywrightError, Page, expect

from pagecraft.knowledge import LocatorStore


'''


def scenario_words(scenario_key: str) -> List[str]:
    words = [
        word for word in re.split(r"[^A-Za-z0-9]+", scenario_key)
        if word and word.lower() not in NOISE_WORDS
    ]
    collapsed: List[str] = []
    for word in words:
        if not collapsed or collapsed[-1].lower() != word.lower():
            collapsed.append(word)
    return collapsed or ["Common"]


def class_name_for(scenario_key: str) -> str:
    """'test_login_py_test_login' -> 'LoginPage'"""
    return "".join(w[0].upper() + w[1:].lower() for w in scenario_words(scenario_key)) + "Page"


def module_name_for(scenario_key: str) -> str:
    """'test_login_py_test_login' -> 'login_page'"""
    return "_".join(w.lower() for w in scenario_words(scenario_key)) + "_page"


def _indent(text: str, spaces: int) -> List[str]:
    pad = " " * spaces
    return [pad + line if line.strip() else "" for line in text.splitlines()]


@dataclass
class PageObjectDescriptor:
    """
    Structured form of one page-object source file.

    properties and methods keep insertion order; new entries are
    appended after the existing ones.
    """
    class_name: str
    file_path: Path
    header: str = ""
    docstring: Optional[str] = None
    properties: Dict[str, str] = field(default_factory=dict)  # name -> expression
    init_extras: List[str] = field(default_factory=list)
    class_extras: List[str] = field(default_factory=list)
    methods: Dict[str, str] = field(default_factory=dict)  # name -> source
    footer: str = ""

    new_properties: List[str] = field(default_factory=list)
    new_methods: List[str] = field(default_factory=list)

    @property
    def module_name(self) -> str:
        return self.file_path.stem

    @property
    def has_changes(self) -> bool:
        return bool(self.new_properties or self.new_methods)

    # ==================== Construction ====================

    @classmethod
    def new(cls, class_name: str, file_path: Path) -> "PageObjectDescriptor":
        return cls(
            class_name=class_name,
            file_path=file_path,
            header=PAGE_OBJECT_HEADER.format(class_name=class_name)
        )

    @classmethod
    def from_source(cls, source: str, file_path: Path) -> Optional["PageObjectDescriptor"]:
        """
        Rebuild a descriptor from page-object source.

        Returns:
            None if the source does not parse or holds no class
        """
        try:
            tree = ast.parse(source)
        except SyntaxError as e:
            logger.warning(f"Cannot parse {file_path} (line {e.lineno}): {e.msg}")
            return None

        class_node = next((n for n in tree.body if isinstance(n, ast.ClassDef)), None)
        if class_node is None:
            logger.warning(f"No class found in {file_path}")
            return None

        lines = source.splitlines(keepends=True)

        def block(node: ast.AST) -> str:
            decorators = getattr(node, "decorator_list", [])
            start = min([node.lineno] + [d.lineno for d in decorators])
            return textwrap.dedent("".join(lines[start - 1:node.end_lineno])).rstrip()

        descriptor = cls(
            class_name=class_node.name,
            file_path=file_path,
            header=block_start_text(lines, class_node),
            docstring=ast.get_docstring(class_node),
            footer="".join(lines[class_node.end_lineno:])
        )

        body = class_node.body
        if descriptor.docstring is not None:
            body = body[1:]

        for node in body:
            if isinstance(node, ast.FunctionDef) and node.name == "__init__":
                descriptor._read_constructor(node, source, block)
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                descriptor.methods[node.name] = block(node)
            else:
                descriptor.class_extras.append(block(node))

        return descriptor

    def _read_constructor(self, node: ast.FunctionDef, source: str, block):
        for statement in node.body:
            target = statement.targets[0] if isinstance(statement, ast.Assign) and len(statement.targets) == 1 else None
            if (
                isinstance(target, ast.Attribute)
                and isinstance(target.value, ast.Name)
                and target.value.id == "self"
            ):
                if target.attr not in RESERVED_ATTRIBUTES:
                    self.properties[target.attr] = ast.get_source_segment(source, statement.value)
            else:
                self.init_extras.append(block(statement))

    @classmethod
    def load(cls, file_path: Path, class_name: str) -> Optional["PageObjectDescriptor"]:
        """Descriptor for file_path: parsed if it exists, fresh otherwise"""
        if not file_path.exists():
            return cls.new(class_name, file_path)
        return cls.from_source(file_path.read_text(encoding="utf-8"), file_path)

    # ==================== Mutation ====================

    def has_method(self, name: str) -> bool:
        return name in self.methods

    def add_property(self, selector: str, expression: str) -> str:
        """
        Name for a hoisted element lookup.

        An identical expression reuses its existing property; otherwise a
        name is derived from the selector, suffixed on collision.
        """
        for name, existing in self.properties.items():
            if existing == expression:
                return name

        base = property_name_for(selector)
        name = base
        counter = 1
        while name in self.properties or name in RESERVED_ATTRIBUTES or name in self.methods:
            name = f"{base}{counter}"
            counter += 1

        self.properties[name] = expression
        self.new_properties.append(name)
        return name

    @staticmethod
    def method_source(name: str, body_lines: List[str]) -> str:
        body = [("    " + line) if line.strip() else "" for line in body_lines] or ["    pass"]
        return "\n".join([f"def {name}(self):"] + body)

    def free_method_name(self, name: str, body_lines: List[str]) -> str:
        """
        name, or name_2, name_3... when name already holds a different body.

        A method with the same name and body is considered the same step.
        """
        candidate = name
        counter = 2
        while candidate in self.methods and self.methods[candidate] != self.method_source(candidate, body_lines):
            candidate = f"{name}_{counter}"
            counter += 1
        return candidate

    def add_method(self, name: str, body_lines: List[str]) -> bool:
        if name in self.methods:
            return False

        self.methods[name] = self.method_source(name, body_lines)
        self.new_methods.append(name)
        return True

    # ==================== Rendering ====================

    def render(self) -> str:
        lines = [f"class {self.class_name}:"]

        if self.docstring:
            doc_lines = self.docstring.splitlines()
            if len(doc_lines) == 1:
                lines.append(f'    """{doc_lines[0]}"""')
            else:
                lines.append(f'    """{doc_lines[0]}')
                lines.extend(_indent("\n".join(doc_lines[1:]), 4))
                lines.append('    """')
            lines.append("")

        for extra in self.class_extras:
            lines.extend(_indent(extra, 4))
            lines.append("")

        lines.append("    def __init__(self, page: Page, locators: LocatorStore):")
        lines.append("        self.page = page")
        lines.append("        self.locators = locators")
        for name, expression in self.properties.items():
            lines.append(f"        self.{name} = {expression}")
        for extra in self.init_extras:
            lines.extend(_indent(extra, 8))

        for source in self.methods.values():
            lines.append("")
            lines.extend(_indent(source, 4))

        text = self.header + "\n".join(lines) + "\n"
        if self.footer.strip():
            text += "\n\n" + self.footer.lstrip("\n")
        return text

    def write(self) -> Path:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self.file_path.write_text(self.render(), encoding="utf-8")
        logger.info(
            f"Wrote {self.file_path} "
            f"(+{len(self.new_methods)} methods, +{len(self.new_properties)} properties)"
        )
        return self.file_path


def block_start_text(lines: List[str], class_node: ast.ClassDef) -> str:
    """Module text above a class line, decorators included"""
    return "".join(lines[:class_node.lineno - 1])
