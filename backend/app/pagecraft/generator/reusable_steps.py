"""
Reusable Steps

Scans previously generated (or hand-written) pytest scripts for
`with step("..."):` blocks so the recorder panel can offer them for
import into a new recording.
"""

import ast
import logging
import re
import textwrap
from pathlib import Path
from typing import Any, Dict, List, Union
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


def _safe(text: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", text)


@dataclass
class TestStep:
    """One importable step block"""
    __test__ = False

    id: str
    title: str
    raw_code: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "rawCode": self.raw_code}


@dataclass
class TestScenario:
    """A test function and the step blocks found in it"""
    __test__ = False

    file: str
    name: str
    steps: List[TestStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "name": self.name,
            "steps": [s.to_dict() for s in self.steps]
        }


def _step_title(node: ast.stmt):
    """Title of a `with step("<title>"):` block, or None"""
    if not isinstance(node, (ast.With, ast.AsyncWith)) or not node.items:
        return None
    call = node.items[0].context_expr
    if (
        isinstance(call, ast.Call)
        and isinstance(call.func, ast.Name)
        and call.func.id == "step"
        and call.args
        and isinstance(call.args[0], ast.Constant)
        and isinstance(call.args[0].value, str)
    ):
        return call.args[0].value
    return None


def _find_step_blocks(statements: List[ast.stmt]) -> List[ast.stmt]:
    """Outermost step blocks in source order"""
    found = []
    for node in statements:
        if _step_title(node) is not None:
            found.append(node)
            continue
        for child_field in ("body", "orelse", "finalbody", "handlers"):
            children = getattr(node, child_field, None)
            if isinstance(children, list):
                found.extend(_find_step_blocks(children))
    return found


def scan_source(source: str, file_name: str) -> List[TestScenario]:
    """Importable scenarios in one test module's source"""
    tree = ast.parse(source)
    lines = source.splitlines()
    scenarios = []

    for node in tree.body:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) or not node.name.startswith("test"):
            continue

        steps = []
        for index, block in enumerate(_find_step_blocks(node.body)):
            raw_code = textwrap.dedent("\n".join(lines[block.lineno - 1:block.end_lineno]))
            steps.append(TestStep(
                id=f"{_safe(file_name)}_{_safe(node.name)}_{index}",
                title=_step_title(block),
                raw_code=raw_code
            ))

        if steps:
            scenarios.append(TestScenario(file=file_name, name=node.name, steps=steps))

    return scenarios


def get_existing_scenarios(tests_dir: Union[str, Path]) -> List[TestScenario]:
    """
    All importable scenarios under tests_dir.

    Modules that do not parse are skipped with a warning.
    """
    tests_dir = Path(tests_dir)
    if not tests_dir.is_dir():
        return []

    scenarios = []
    for test_file in sorted(tests_dir.glob("test_*.py")):
        try:
            source = test_file.read_text(encoding="utf-8")
            scenarios.extend(scan_source(source, test_file.name))
        except SyntaxError as e:
            logger.warning(f"Skipping {test_file.name}: {e.msg} (line {e.lineno})")
        except OSError as e:
            logger.error(f"Failed to read {test_file}: {e}")

    logger.info(f"Found {len(scenarios)} importable scenarios in {tests_dir}")
    return scenarios
