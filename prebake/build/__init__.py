"""Interface between prebake and the outer build."""

from prebake.build.context import BuildContext, SyntaxUnit, module_name_for

__all__ = [
    'BuildContext',
    'SyntaxUnit',
    'module_name_for',
]
