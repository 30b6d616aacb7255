"""
Sandbox Evaluator
=================

Compiles a synthesized unit in a throwaway module, runs its single method and
captures ``str()`` of the result.

Phases:
1. Compile - ``compile()`` the text, then check the method's scopes for
   names that only the host program could have provided (globals outside the
   baseline, attributes of ``self``). Problems come back as diagnostics.
2. Execute - run the code object in a fresh, uniquely named module seeded with
   the baseline reference set, construct ``C`` and call ``M()``.

Every fault raised by the candidate is returned as data; nothing a candidate
does can make ``evaluate`` raise (except ``KeyboardInterrupt``, which belongs
to the outer build). Compiled code is never written to disk.
"""

import ast
import asyncio
import builtins
import functools
import importlib
import inspect
import logging
import symtable
import sys
import types
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Mapping, Set, Tuple

from prebake.model import Diagnostic, EvaluationOutcome, SynthesizedUnit
from prebake.utils.helpers import Timer, format_ns

logger = logging.getLogger(__name__)

BASELINE_VERSION = 1

# Importable by name inside every unit, without an import statement.
BASELINE_MODULES: Tuple[str, ...] = (
    'collections',
    'decimal',
    'fractions',
    'functools',
    'itertools',
    'math',
    'operator',
    're',
    'statistics',
    'string',
)

SYNTAX_ERROR = 'PB0001'
UNDEFINED_NAME = 'PB0103'
INSTANCE_STATE = 'PB0120'


@dataclass(frozen=True, eq=False)
class BaselineReferenceSet:
    """
    Fixed set of modules visible to every synthesized unit.

    Loaded once per process and never mutated afterwards.
    """
    version: int
    modules: Mapping[str, types.ModuleType]

    @classmethod
    def load(cls) -> 'BaselineReferenceSet':
        modules = {name: importlib.import_module(name) for name in BASELINE_MODULES}
        return cls(version=BASELINE_VERSION, modules=types.MappingProxyType(modules))

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self.modules)


@functools.lru_cache(maxsize=None)
def default_baseline() -> BaselineReferenceSet:
    """The process-wide baseline, loaded on first use."""
    return BaselineReferenceSet.load()


class SandboxEvaluator:
    """
    Usage:
        >>> evaluator = SandboxEvaluator()
        >>> outcome = evaluator.evaluate(unit)
        >>> outcome.text
    """

    def __init__(self, baseline: BaselineReferenceSet = None):
        self.baseline = baseline or default_baseline()
        self._builtin_names: Set[str] = set(dir(builtins))

    def evaluate(self, unit: SynthesizedUnit) -> EvaluationOutcome:
        with Timer() as t:
            code, diagnostics = self.compile(unit)
            if diagnostics:
                outcome = EvaluationOutcome.compile_failure(diagnostics)
            else:
                outcome = self.execute(unit, code)
        logger.debug(
            'Evaluated %s as %s in %s', unit.candidate.qualified_name,
            'success' if outcome.succeeded else outcome.failure.kind.value,
            format_ns(t.elapsed_ns),
        )
        return outcome

    # ---- Compile phase ----

    def compile(self, unit: SynthesizedUnit) -> Tuple[types.CodeType, List[Diagnostic]]:
        """Compile ``unit``; returns (code, []) or (None, diagnostics)."""
        filename = f'<{unit.name}>'
        try:
            tree = ast.parse(unit.source, filename=filename)
            code = compile(tree, filename, 'exec', dont_inherit=True)
        except SyntaxError as exc:
            return None, [Diagnostic(SYNTAX_ERROR, exc.msg, exc.lineno)]
        except (ValueError, RecursionError) as exc:
            return None, [Diagnostic(SYNTAX_ERROR, str(exc))]

        try:
            method = _find_method(tree)
            diagnostics = self._check_free_names(unit, tree, filename)
        except LookupError as exc:
            return None, [Diagnostic(SYNTAX_ERROR, str(exc))]
        diagnostics.extend(_check_instance_state(method))
        if diagnostics:
            return None, diagnostics
        return code, []

    def _check_free_names(self, unit: SynthesizedUnit, tree: ast.Module,
                          filename: str) -> List[Diagnostic]:
        top = symtable.symtable(unit.source, filename, 'exec')
        allowed = self._builtin_names | set(self.baseline.names)
        allowed |= {s.get_name() for s in top.get_symbols() if s.is_assigned() or s.is_imported()}

        class_table = _child(top, SynthesizedUnit.CLASS_NAME)
        method_table = _child(class_table, SynthesizedUnit.METHOD_NAME)

        tables = list(_walk_tables(method_table))
        # `global x` plus an assignment creates x in the unit's own module.
        allowed |= {
            s.get_name()
            for table in tables for s in table.get_symbols()
            if s.is_declared_global() and s.is_assigned()
        }

        missing: List[str] = []
        for table in tables:
            for sym in table.get_symbols():
                name = sym.get_name()
                if sym.is_global() and sym.is_referenced() and name not in allowed:
                    if name not in missing:
                        missing.append(name)

        lines = _first_load_lines(tree)
        return [
            Diagnostic(
                UNDEFINED_NAME,
                f"The name '{name}' does not exist in the current context",
                lines.get(name),
            )
            for name in missing
        ]

    # ---- Execute phase ----

    def execute(self, unit: SynthesizedUnit, code: types.CodeType) -> EvaluationOutcome:
        module = types.ModuleType(unit.name)
        namespace = module.__dict__
        namespace.update(self.baseline.modules)
        namespace['__builtins__'] = builtins

        # Registered while running so decorators such as dataclass can find the module.
        sys.modules[unit.name] = module
        try:
            exec(code, namespace)
            instance = namespace[SynthesizedUnit.CLASS_NAME]()
            value = getattr(instance, SynthesizedUnit.METHOD_NAME)()
            if inspect.iscoroutine(value):
                value = _run_coroutine(value)
            return EvaluationOutcome.success(str(value))
        except (Exception, SystemExit) as exc:
            return EvaluationOutcome.runtime_failure(f'{type(exc).__name__}: {exc}')
        finally:
            sys.modules.pop(unit.name, None)


def _run_coroutine(coro):
    """Drive ``coro`` to completion, off-thread if this thread's loop is busy."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def _child(table: symtable.SymbolTable, name: str) -> symtable.SymbolTable:
    for child in table.get_children():
        if child.get_name() == name and child.get_type() != 'annotation':
            return child
    raise LookupError(f'No scope named {name!r} in {table.get_name()!r}')


def _walk_tables(table: symtable.SymbolTable):
    """The table and all nested scopes, skipping annotation scopes."""
    yield table
    for child in table.get_children():
        if child.get_type() == 'annotation':
            continue
        yield from _walk_tables(child)


def _find_method(tree: ast.Module):
    for node in tree.body:
        if isinstance(node, ast.ClassDef) and node.name == SynthesizedUnit.CLASS_NAME:
            for item in node.body:
                if (isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef))
                        and item.name == SynthesizedUnit.METHOD_NAME):
                    return item
    raise LookupError('Synthesized unit has no C.M method')


def _first_load_lines(tree: ast.Module) -> Dict[str, int]:
    lines: Dict[str, int] = {}
    for node in ast.walk(tree):
        if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load):
            if node.id not in lines or node.lineno < lines[node.id]:
                lines[node.id] = node.lineno
    return lines


def _check_instance_state(method) -> List[Diagnostic]:
    """Flag ``self.<attr>`` where ``self`` is the synthesized method's receiver."""
    visitor = _SelfAttributeVisitor()
    for stmt in method.body:
        visitor.visit(stmt)
    return [
        Diagnostic(
            INSTANCE_STATE,
            f"'self.{attr}' refers to instance state that is unavailable at build time",
            line,
        )
        for attr, line in visitor.found
    ]


class _SelfAttributeVisitor(ast.NodeVisitor):

    def __init__(self):
        self.found: List[Tuple[str, int]] = []

    def visit_Attribute(self, node: ast.Attribute):
        if isinstance(node.value, ast.Name) and node.value.id == 'self':
            if node.attr not in [a for a, _ in self.found]:
                self.found.append((node.attr, node.lineno))
        self.generic_visit(node)

    def _visit_scope(self, node):
        # A nested scope with its own `self` parameter shadows the receiver.
        args = node.args
        params = [a.arg for a in args.posonlyargs + args.args + args.kwonlyargs]
        if 'self' not in params:
            self.generic_visit(node)

    visit_FunctionDef = _visit_scope
    visit_AsyncFunctionDef = _visit_scope
    visit_Lambda = _visit_scope
