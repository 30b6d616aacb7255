"""
prebake: Build-Time Evaluation of Marked Python Functions
=========================================================

prebake moves deterministic, expensive computation out of runtime and into
the build. Functions decorated with ``@compile_time_executor`` are found in
the host sources, their bodies are evaluated in an isolated sandbox during the
build, and a sibling ``<name>_compile_time`` function returning the result as
a literal is generated next to them.

Core Components:
    - build: the outer build interface (parsed host modules, generated sources)
    - pipeline: scanner, synthesizer, sandbox evaluator, emitter, generator
    - analysis: determinism check for candidate bodies
    - cli: the ``prebake`` command

Usage:
    >>> from prebake import compile_time_executor
    >>> class Calculator:
    ...     @compile_time_executor
    ...     def answer(self) -> str:
    ...         return str(sum(range(10)))

    $ prebake src --out src/generated
    >>> import generated
    >>> Calculator().answer_compile_time()
    '45'
"""

__version__ = "1.0.0"

from prebake.marker import compile_time_executor, is_compile_time_executor
from prebake.errors import (
    DuplicateSourceError,
    EmissionError,
    HostSyntaxError,
    PrebakeError,
)
from prebake.model import (
    CandidateFunction,
    Diagnostic,
    EvaluationFailure,
    EvaluationOutcome,
    FailureKind,
    FunctionKind,
    GeneratedUnit,
    PassReport,
    SourceLocation,
    SynthesizedUnit,
)
from prebake.build import BuildContext, SyntaxUnit
from prebake.analysis import DeterminismChecker, DeterminismReport
from prebake.pipeline import (
    BaselineReferenceSet,
    BodySynthesizer,
    CandidateScanner,
    Generator,
    GeneratorConfig,
    MarkerDefinitionProvider,
    ResultEmitter,
    SandboxEvaluator,
    encode_literal,
)
