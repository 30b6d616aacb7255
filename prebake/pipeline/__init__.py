"""
Build-time evaluation pipeline:

    CandidateScanner -> BodySynthesizer -> SandboxEvaluator -> ResultEmitter

driven by ``Generator``, with ``MarkerDefinitionProvider`` contributing the
marker source on every pass.
"""

from prebake.pipeline.emitter import DEFAULT_SUFFIX, ResultEmitter
from prebake.pipeline.generator import Generator, GeneratorConfig
from prebake.pipeline.literals import encode_literal
from prebake.pipeline.marker_provider import MARKER_HINT, MarkerDefinitionProvider
from prebake.pipeline.sandbox import (
    BASELINE_MODULES,
    BaselineReferenceSet,
    SandboxEvaluator,
    default_baseline,
)
from prebake.pipeline.scanner import CandidateScanner
from prebake.pipeline.synthesizer import BodySynthesizer

__all__ = [
    'BASELINE_MODULES',
    'BaselineReferenceSet',
    'BodySynthesizer',
    'CandidateScanner',
    'DEFAULT_SUFFIX',
    'Generator',
    'GeneratorConfig',
    'MARKER_HINT',
    'MarkerDefinitionProvider',
    'ResultEmitter',
    'SandboxEvaluator',
    'default_baseline',
    'encode_literal',
]
