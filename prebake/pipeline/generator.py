"""
Generator
=========

Runs one build pass:

    Init -> ScanCandidates -> (none: Done)
                           -> for each candidate: Synthesize -> Evaluate -> Emit
                           -> Done

Candidates are independent of each other, so with ``workers > 1`` they are
evaluated on a thread pool. Every candidate ends up as exactly one generated
source, successful or not; a failing candidate never aborts the pass.

Usage:
    >>> context = BuildContext.from_directory('src')
    >>> report = Generator(workers=4).execute(context)
    >>> report.candidates, report.failed
"""

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from prebake.analysis.determinism import DeterminismChecker
from prebake.build.context import BuildContext
from prebake.errors import EmissionError
from prebake.marker import MARKER_NAME
from prebake.model import (
    CandidateFunction, Diagnostic, EvaluationOutcome, FailureKind,
    GeneratedUnit, PassReport,
)
from prebake.pipeline.emitter import DEFAULT_SUFFIX, ResultEmitter
from prebake.pipeline.marker_provider import MarkerDefinitionProvider
from prebake.pipeline.sandbox import SandboxEvaluator, default_baseline
from prebake.pipeline.scanner import CandidateScanner
from prebake.pipeline.synthesizer import BodySynthesizer
from prebake.utils.helpers import Timer, format_ns

logger = logging.getLogger(__name__)

DUPLICATE_MEMBER = 'PB0111'


@dataclass
class GeneratorConfig:
    """Tuning for a generator; every field can be overridden per instance."""
    marker_name: str = MARKER_NAME
    suffix: str = DEFAULT_SUFFIX
    workers: int = 1
    check_determinism: bool = True


class Generator:
    """
    Build-time evaluator for functions marked with ``@compile_time_executor``.
    """

    def __init__(self, config: Optional[GeneratorConfig] = None, **overrides):
        self.config = replace(config or GeneratorConfig(), **overrides)
        if self.config.workers < 1:
            raise ValueError(f'workers must be at least 1, got {self.config.workers}')

        baseline = default_baseline()
        self.scanner = CandidateScanner(self.config.marker_name)
        self.synthesizer = BodySynthesizer(baseline)
        self.evaluator = SandboxEvaluator(baseline)
        self.emitter = ResultEmitter(self.config.suffix)
        self.marker_provider = MarkerDefinitionProvider()
        self.determinism = DeterminismChecker()

    def execute(self, context: BuildContext) -> PassReport:
        """Run one pass over ``context`` and register every generated source."""
        with Timer() as t:
            self.marker_provider.provide(context)
            candidates = self.scanner.scan(context.units)
            report = PassReport(candidates=len(candidates))

            if candidates:
                unique, duplicates = self._partition(candidates)
                for group in duplicates:
                    report.units.append(self._reject(group, context))
                    report.duplicates += len(group)

                for unit, outcome in self._run(unique, context):
                    report.units.append(unit)
                    self._tally(report, outcome)

        report.units.sort(key=lambda u: u.hint_name)
        report.elapsed_ms = t.elapsed_ms
        logger.info(
            'Build pass: %d candidates, %d generated, %d failed in %s',
            report.candidates, len(report.units), report.failed,
            format_ns(t.elapsed_ns),
        )
        return report

    # ---- Per-candidate work ----

    def process(self, candidate: CandidateFunction,
                context: BuildContext) -> Tuple[GeneratedUnit, EvaluationOutcome]:
        """Synthesize, evaluate and emit one candidate."""
        if self.config.check_determinism:
            report = self.determinism.check(candidate)
            if not report.is_deterministic:
                logger.warning(
                    '%s may not be reproducible: %s',
                    candidate.qualified_name, '; '.join(report.reasons),
                )

        unit = self.synthesizer.synthesize(candidate)
        outcome = self.evaluator.evaluate(unit)
        if not outcome.succeeded:
            logger.warning(
                '%s (%s) failed at build time: %s',
                candidate.qualified_name, candidate.location, outcome.failure.message,
            )

        try:
            generated = self.emitter.emit(candidate, outcome, context)
        except EmissionError as exc:
            logger.error('Cannot emit %s: %s', candidate.qualified_name, exc)
            outcome = EvaluationOutcome.emission_failure(str(exc))
            generated = self.emitter.emit(candidate, outcome, context)
        return generated, outcome

    def _run(self, candidates: List[CandidateFunction], context: BuildContext):
        if self.config.workers == 1 or len(candidates) == 1:
            return [self.process(c, context) for c in candidates]
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            return list(pool.map(lambda c: self.process(c, context), candidates))

    # ---- Duplicate handling ----

    @staticmethod
    def _partition(candidates: List[CandidateFunction]):
        """Split candidates into unique ones and groups sharing a source name."""
        groups: 'OrderedDict[str, List[CandidateFunction]]' = OrderedDict()
        for candidate in candidates:
            groups.setdefault(candidate.hint_name, []).append(candidate)

        unique = [g[0] for g in groups.values() if len(g) == 1]
        duplicates = [g for g in groups.values() if len(g) > 1]
        return unique, duplicates

    def _reject(self, group: List[CandidateFunction], context: BuildContext) -> GeneratedUnit:
        """Emit one failure source for candidates that would overwrite each other."""
        first = group[0]
        places = ', '.join(f'{c.qualified_name} at {c.location}' for c in group)
        diagnostic = Diagnostic(
            DUPLICATE_MEMBER,
            f"'{first.hint_name}' is declared {len(group)} times ({places}); "
            f"compile-time functions need unique names",
            first.location.line,
        )
        logger.warning('Rejected %s: %s', first.qualified_name, diagnostic.message)
        outcome = EvaluationOutcome.compile_failure([diagnostic])
        return self.emitter.emit(first, outcome, context)

    @staticmethod
    def _tally(report: PassReport, outcome: EvaluationOutcome):
        if outcome.succeeded:
            report.succeeded += 1
        elif outcome.failure.kind is FailureKind.COMPILE:
            report.compile_failures += 1
        elif outcome.failure.kind is FailureKind.RUNTIME:
            report.runtime_failures += 1
        else:
            report.emission_failures += 1
