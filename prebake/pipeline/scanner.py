"""
Candidate Scanner
=================

Walks the function declarations of every host module and collects those
decorated with the marker. This is a purely syntactic filter: a decorator
matches when its simple name equals the marker name, whatever module it was
imported from and whether or not it is called.

    @compile_time_executor            -> matches
    @prebake.compile_time_executor    -> matches
    @compile_time_executor()          -> matches
    @functools.cache                  -> ignored
"""

import ast
import logging
from typing import Iterable, List, Optional

from prebake.build.context import SyntaxUnit
from prebake.marker import MARKER_NAME
from prebake.model import CandidateFunction, FunctionKind, SourceLocation

logger = logging.getLogger(__name__)


def decorator_name(node: ast.expr) -> Optional[str]:
    """Simple name of a decorator expression, or None if it has none."""
    if isinstance(node, ast.Call):
        node = node.func
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


class CandidateScanner:
    """
    Collects marked functions from parsed host modules.

    Usage:
        >>> scanner = CandidateScanner()
        >>> candidates = scanner.scan(context.units)
    """

    def __init__(self, marker_name: str = MARKER_NAME):
        self.marker_name = marker_name

    def scan(self, units: Iterable[SyntaxUnit]) -> List[CandidateFunction]:
        candidates: List[CandidateFunction] = []
        for unit in units:
            visitor = _CandidateVisitor(unit, self.marker_name)
            visitor.visit(unit.tree)
            candidates.extend(visitor.candidates)
        logger.debug('Scan found %d candidates', len(candidates))
        return candidates


class _CandidateVisitor(ast.NodeVisitor):
    """Visits one module, tracking the enclosing class path."""

    def __init__(self, unit: SyntaxUnit, marker_name: str):
        self.unit = unit
        self.marker_name = marker_name
        self.candidates: List[CandidateFunction] = []
        self._class_path: List[str] = []

    def visit_ClassDef(self, node: ast.ClassDef):
        self._class_path.append(node.name)
        for stmt in node.body:
            self.visit(stmt)
        self._class_path.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef):
        self._collect(node, is_async=False)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef):
        self._collect(node, is_async=True)

    def _collect(self, node, is_async: bool):
        # Functions nested in functions are unreachable from outside; not descended.
        names = [decorator_name(d) for d in node.decorator_list]
        if self.marker_name not in names:
            return

        self.candidates.append(CandidateFunction(
            namespace=self.unit.module,
            type_name='.'.join(self._class_path) or None,
            name=node.name,
            return_type=ast.unparse(node.returns) if node.returns else None,
            body='\n'.join(ast.unparse(stmt) for stmt in node.body),
            location=SourceLocation(self.unit.path, node.lineno, node.col_offset),
            kind=self._kind(names),
            is_async=is_async,
        ))

    def _kind(self, decorator_names: List[Optional[str]]) -> FunctionKind:
        if not self._class_path:
            return FunctionKind.MODULE
        if 'staticmethod' in decorator_names:
            return FunctionKind.STATIC
        if 'classmethod' in decorator_names:
            return FunctionKind.CLASS
        return FunctionKind.INSTANCE
