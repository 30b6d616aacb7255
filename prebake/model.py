"""
Pipeline Data Model
===================

Value types passed between the stages of one build pass:

    CandidateFunction -> SynthesizedUnit -> EvaluationOutcome -> GeneratedUnit

All of them live for a single pass and are never shared between passes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

FAILURE_PREFIX = 'Exception when evaluating at build time: '


class FunctionKind(Enum):
    """How a candidate is bound, and therefore how its sibling is bound."""
    INSTANCE = 'instance'
    STATIC = 'static'
    CLASS = 'class'
    MODULE = 'module'


class FailureKind(Enum):
    COMPILE = 'compile'
    RUNTIME = 'runtime'
    EMISSION = 'emission'


@dataclass(frozen=True)
class SourceLocation:
    path: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        return f'{self.path}:{self.line}:{self.column}'


@dataclass(frozen=True)
class CandidateFunction:
    """
    A function carrying the marker, as found by the scanner.

    ``type_name`` is the dotted class path inside ``namespace``
    (``Outer.Inner``), or None for a module-level function.
    """
    namespace: str
    type_name: Optional[str]
    name: str
    return_type: Optional[str]
    body: str
    location: SourceLocation
    kind: FunctionKind = FunctionKind.INSTANCE
    is_async: bool = False

    @property
    def identity(self) -> Tuple[str, Optional[str], str]:
        return (self.namespace, self.type_name, self.name)

    @property
    def qualified_name(self) -> str:
        parts = [self.namespace, self.type_name, self.name]
        return '.'.join(p for p in parts if p)

    @property
    def hint_name(self) -> str:
        """Key of the generated source: ``<namespace>_<type>_<name>.gen``."""
        parts = [self.namespace, self.type_name, self.name]
        return '_'.join(p for p in parts if p) + '.gen'


@dataclass(frozen=True)
class SynthesizedUnit:
    """Standalone source wrapping one candidate body in class ``C``, method ``M``."""
    name: str
    source: str
    references: Tuple[str, ...]
    candidate: CandidateFunction

    CLASS_NAME = 'C'
    METHOD_NAME = 'M'


@dataclass(frozen=True)
class Diagnostic:
    id: str
    message: str
    line: Optional[int] = None

    def __str__(self) -> str:
        return f'{self.id} {self.message}'


@dataclass(frozen=True)
class EvaluationFailure:
    kind: FailureKind
    message: str
    diagnostics: Tuple[Diagnostic, ...] = ()


@dataclass(frozen=True)
class EvaluationOutcome:
    """
    Result of evaluating one synthesized unit.

    Exactly one of ``result`` and ``failure`` is set.
    """
    result: Optional[str] = None
    failure: Optional[EvaluationFailure] = None

    def __post_init__(self):
        if (self.result is None) == (self.failure is None):
            raise ValueError('EvaluationOutcome needs exactly one of result or failure')

    @classmethod
    def success(cls, result: str) -> 'EvaluationOutcome':
        return cls(result=result)

    @classmethod
    def compile_failure(cls, diagnostics: List[Diagnostic]) -> 'EvaluationOutcome':
        message = '\n'.join(str(d) for d in diagnostics)
        return cls(failure=EvaluationFailure(
            FailureKind.COMPILE, message, tuple(diagnostics),
        ))

    @classmethod
    def runtime_failure(cls, message: str) -> 'EvaluationOutcome':
        return cls(failure=EvaluationFailure(FailureKind.RUNTIME, message))

    @classmethod
    def emission_failure(cls, message: str) -> 'EvaluationOutcome':
        return cls(failure=EvaluationFailure(FailureKind.EMISSION, message))

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def text(self) -> str:
        """The string the generated sibling returns."""
        if self.failure is None:
            return self.result
        return FAILURE_PREFIX + self.failure.message


@dataclass(frozen=True)
class GeneratedUnit:
    hint_name: str
    source: str
    identity: Tuple[str, Optional[str], str]
    failed: bool = False


@dataclass
class PassReport:
    """Summary of one generator pass."""
    units: List[GeneratedUnit] = field(default_factory=list)
    candidates: int = 0
    succeeded: int = 0
    compile_failures: int = 0
    runtime_failures: int = 0
    emission_failures: int = 0
    duplicates: int = 0
    elapsed_ms: float = 0.0

    @property
    def failed(self) -> int:
        return len([u for u in self.units if u.failed])
