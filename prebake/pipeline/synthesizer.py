"""
Body Synthesizer
================

Wraps one candidate body into a standalone unit: a single class ``C`` with a
single no-argument method ``M`` whose return annotation and body are copied
from the candidate.

The body must not depend on anything outside itself (instance state,
module globals, parameters). That is not verified here; the sandbox reports
it as a compile failure.
"""

import textwrap
import uuid

from prebake.model import CandidateFunction, SynthesizedUnit
from prebake.pipeline.literals import encode_literal
from prebake.pipeline.sandbox import BaselineReferenceSet, default_baseline

UNIT_TEMPLATE = '''\
class {class_name}:

    {async_}def {method_name}(self){returns}:
{body}
'''


class BodySynthesizer:
    """
    Usage:
        >>> unit = BodySynthesizer().synthesize(candidate)
        >>> print(unit.source)
    """

    def __init__(self, baseline: BaselineReferenceSet = None):
        self.baseline = baseline or default_baseline()

    def synthesize(self, candidate: CandidateFunction) -> SynthesizedUnit:
        source = self.render(candidate)
        return SynthesizedUnit(
            name=f'prebake_{uuid.uuid4().hex}',
            source=source,
            references=self.baseline.names,
            candidate=candidate,
        )

    @staticmethod
    def render(candidate: CandidateFunction) -> str:
        """Unit text for ``candidate``; identical input gives identical text."""
        # Quoted so the host-only return type is never evaluated.
        returns = f' -> {encode_literal(candidate.return_type)}' if candidate.return_type else ''
        return UNIT_TEMPLATE.format(
            class_name=SynthesizedUnit.CLASS_NAME,
            method_name=SynthesizedUnit.METHOD_NAME,
            async_='async ' if candidate.is_async else '',
            returns=returns,
            body=textwrap.indent(candidate.body, ' ' * 8),
        )
