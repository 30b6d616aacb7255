"""
Determinism Check
=================

Static scan of a candidate body for calls whose result changes from one build
to the next: clocks, random sources, the environment, I/O. A body using them
still evaluates, but the generated literal is no longer reproducible, so the
generator logs a warning naming the offending calls.

The check is advisory and conservative in the same direction as the rest of
the pipeline: it never blocks a candidate.
"""

import ast
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set

from prebake.model import CandidateFunction

_KNOWN_NONDETERMINISTIC: FrozenSet[str] = frozenset({
    'random.random', 'random.randint', 'random.choice', 'random.choices',
    'random.shuffle', 'random.sample', 'random.uniform',
    'random.gauss', 'random.randrange', 'random.getrandbits',
    'time.time', 'time.perf_counter', 'time.monotonic',
    'time.process_time', 'time.time_ns', 'time.perf_counter_ns',
    'time.localtime', 'time.gmtime',
    'datetime.now', 'datetime.utcnow', 'datetime.today', 'date.today',
    'datetime.datetime.now', 'datetime.datetime.utcnow',
    'datetime.datetime.today', 'datetime.date.today',
    'uuid.uuid4', 'uuid.uuid1',
    'os.urandom', 'os.getpid', 'os.getenv', 'os.environ.get',
    'secrets.token_bytes', 'secrets.token_hex', 'secrets.choice',
    'id', 'hash',
})

_KNOWN_IO_FUNCTIONS: FrozenSet[str] = frozenset({
    'print', 'input', 'open', 'exec', 'eval', 'compile',
    '__import__', 'exit', 'quit', 'breakpoint',
    'os.system', 'os.remove', 'os.listdir', 'subprocess.run',
    'subprocess.call', 'subprocess.check_output', 'subprocess.Popen',
})


@dataclass
class DeterminismReport:
    function_name: str
    nondeterministic_calls: Set[str] = field(default_factory=set)
    io_calls: Set[str] = field(default_factory=set)

    @property
    def is_deterministic(self) -> bool:
        return not (self.nondeterministic_calls or self.io_calls)

    @property
    def reasons(self) -> List[str]:
        reasons = []
        if self.nondeterministic_calls:
            reasons.append(
                f"Nondeterministic calls: {', '.join(sorted(self.nondeterministic_calls))}"
            )
        if self.io_calls:
            reasons.append(
                f"I/O calls: {', '.join(sorted(self.io_calls))}"
            )
        return reasons


class DeterminismChecker:
    """
    Usage:
        >>> report = DeterminismChecker().check(candidate)
        >>> report.is_deterministic
    """

    def __init__(self, *, extra_nondeterministic: Optional[Set[str]] = None):
        self._nondeterministic = set(_KNOWN_NONDETERMINISTIC)
        if extra_nondeterministic:
            self._nondeterministic |= extra_nondeterministic

    def check(self, candidate: CandidateFunction) -> DeterminismReport:
        report = DeterminismReport(function_name=candidate.qualified_name)
        try:
            tree = ast.parse(candidate.body)
        except SyntaxError:
            # The sandbox reports this one as a compile failure.
            return report

        visitor = _CallVisitor(self._nondeterministic)
        visitor.visit(tree)
        report.nondeterministic_calls = visitor.nondeterministic_calls
        report.io_calls = visitor.io_calls
        return report


class _CallVisitor(ast.NodeVisitor):
    """Collects calls, resolving names bound by imports inside the body."""

    def __init__(self, nondeterministic: Set[str]):
        self.nondeterministic = nondeterministic
        self.nondeterministic_calls: Set[str] = set()
        self.io_calls: Set[str] = set()
        self._aliases: Dict[str, str] = {}

    def visit_Import(self, node: ast.Import):
        for alias in node.names:
            if alias.asname:
                self._aliases[alias.asname] = alias.name

    def visit_ImportFrom(self, node: ast.ImportFrom):
        if node.module:
            for alias in node.names:
                self._aliases[alias.asname or alias.name] = f'{node.module}.{alias.name}'

    def visit_Call(self, node: ast.Call):
        name = self._resolve(node.func)
        if name:
            if name in self.nondeterministic:
                self.nondeterministic_calls.add(name)
            elif name in _KNOWN_IO_FUNCTIONS:
                self.io_calls.add(name)
        self.generic_visit(node)

    def _resolve(self, node: ast.expr) -> Optional[str]:
        if isinstance(node, ast.Name):
            return self._aliases.get(node.id, node.id)
        if isinstance(node, ast.Attribute):
            base = self._resolve(node.value)
            if base:
                return f'{base}.{node.attr}'
        return None
