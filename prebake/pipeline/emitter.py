"""
Result Emitter
==============

Turns an evaluation outcome into a generated module that declares the
``<name><suffix>`` sibling and attaches it to the candidate's class (or
module). Python classes cannot be declared in several places, so the class
is reopened by assignment instead:

    from pkg.calc import Calculator


    def pi_compile_time(self) -> str:
        return '31415...'


    pi_compile_time.__qualname__ = 'Calculator.pi_compile_time'
    Calculator.pi_compile_time = pi_compile_time

Failures are emitted the same way, with the failure message as the literal,
so a broken candidate shows up at runtime instead of breaking the build.
"""

import logging

from prebake.build.context import BuildContext
from prebake.model import CandidateFunction, EvaluationOutcome, FunctionKind, GeneratedUnit
from prebake.pipeline.literals import encode_literal

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = '_compile_time'

HEADER = '''\
# <auto-generated>
#     Generated by prebake from {origin}; do not edit.
# </auto-generated>
'''

SIBLING_TEMPLATE = '''\
{header}{import_line}


def {sibling}({params}) -> str:
    return {literal}


{sibling}.__qualname__ = {qualname}
{target}.{attribute} = {binding}
'''

_PARAMS = {
    FunctionKind.INSTANCE: 'self',
    FunctionKind.STATIC: '',
    FunctionKind.CLASS: 'cls',
    FunctionKind.MODULE: '',
}

_BINDINGS = {
    FunctionKind.INSTANCE: '{sibling}',
    FunctionKind.STATIC: 'staticmethod({sibling})',
    FunctionKind.CLASS: 'classmethod({sibling})',
    FunctionKind.MODULE: '{sibling}',
}


def mangle(class_name: str, name: str) -> str:
    """
    Attribute name under which ``name`` is stored when written in the body
    of ``class_name``: ``__secret`` in ``Vault`` becomes ``_Vault__secret``.
    """
    if not name.startswith('__') or name.endswith('__'):
        return name
    stripped = class_name.lstrip('_')
    if not stripped:
        return name
    return f'_{stripped}{name}'


class ResultEmitter:
    """
    Usage:
        >>> emitter = ResultEmitter()
        >>> unit = emitter.emit(candidate, outcome, context)
    """

    def __init__(self, suffix: str = DEFAULT_SUFFIX):
        if not suffix or not ('x' + suffix).isidentifier():
            raise ValueError(f'Suffix {suffix!r} cannot be part of a function name')
        self.suffix = suffix

    def sibling_name(self, candidate: CandidateFunction) -> str:
        return candidate.name + self.suffix

    def render(self, candidate: CandidateFunction, outcome: EvaluationOutcome) -> str:
        """Generated module text. Raises EmissionError if the literal is unsafe."""
        sibling = self.sibling_name(candidate)
        literal = encode_literal(outcome.text)

        if candidate.kind is FunctionKind.MODULE:
            import_line = f'import {candidate.namespace} as _host'
            target = '_host'
            qualname = sibling
            attribute = sibling
        else:
            classes = candidate.type_name.split('.')
            target = '.'.join(
                [classes[0]] + [mangle(outer, inner) for outer, inner in zip(classes, classes[1:])]
            )
            qualname = f'{candidate.type_name}.{sibling}'
            attribute = mangle(classes[-1], sibling)
            import_line = f'from {candidate.namespace} import {classes[0]}'

        return SIBLING_TEMPLATE.format(
            header=HEADER.format(origin=candidate.qualified_name),
            import_line=import_line,
            sibling=sibling,
            params=_PARAMS[candidate.kind],
            literal=literal,
            qualname=encode_literal(qualname),
            target=target,
            attribute=attribute,
            binding=_BINDINGS[candidate.kind].format(sibling=sibling),
        )

    def emit(self, candidate: CandidateFunction, outcome: EvaluationOutcome,
             context: BuildContext) -> GeneratedUnit:
        """Render the sibling for ``candidate`` and register it with the build."""
        source = self.render(candidate, outcome)
        context.add_source(candidate.hint_name, source)
        return GeneratedUnit(
            hint_name=candidate.hint_name,
            source=source,
            identity=candidate.identity,
            failed=not outcome.succeeded,
        )
