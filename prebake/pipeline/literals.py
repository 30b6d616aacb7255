"""
Literal Encoding
================

The single place where captured text is turned into source. Everything the
emitter writes between the quotes goes through ``encode_literal``.
"""

import ast

from prebake.errors import EmissionError


def encode_literal(text: str) -> str:
    """
    Return a Python string literal that evaluates to exactly ``text``.

    Quotes, backslashes, newlines and other control characters are escaped
    by ``repr``; the result is parsed back and compared before it is handed
    out, so a literal that would not round-trip is never emitted.
    ``str.__repr__`` is used directly so a ``str`` subclass cannot override
    the quoting.
    """
    if not isinstance(text, str):
        raise EmissionError(f'Can only emit str literals, got {type(text).__name__}')

    literal = str.__repr__(text)
    try:
        parsed = ast.literal_eval(literal)
    except (SyntaxError, ValueError) as exc:
        raise EmissionError(f'Literal does not parse back: {exc}') from exc
    if parsed != text or type(parsed) is not str:
        raise EmissionError('Literal does not round-trip to the captured text')
    return literal
