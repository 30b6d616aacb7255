"""
Compile-Time Executor Marker
============================

Decorator that tags a function for build-time evaluation.

The decorator itself does nothing at runtime beyond flagging the function:
the build pass finds marked functions syntactically, evaluates their bodies,
and emits a ``<name>_compile_time`` sibling returning the result as a literal.

This module only depends on the standard library. Its source is copied
verbatim into every generated output package, so code importing the marker
from there keeps working without prebake installed.

Usage:
    >>> class Calculator:
    ...     @compile_time_executor
    ...     def answer(self) -> str:
    ...         return str(6 * 7)
"""

import inspect

MARKER_NAME = 'compile_time_executor'
MARKER_ATTRIBUTE = '__compile_time_executor__'


def compile_time_executor(func):
    """
    Mark a function for evaluation at build time.

    Only functions (optionally wrapped in ``staticmethod`` or
    ``classmethod``) can be marked, and only once. The flag is stored on the
    function object, so a subclass overriding the method is not marked.
    """
    target = func.__func__ if isinstance(func, (staticmethod, classmethod)) else func
    if not inspect.isfunction(target):
        raise TypeError(
            f'{MARKER_NAME} can only decorate functions, got {type(func).__name__}'
        )
    if getattr(target, MARKER_ATTRIBUTE, False):
        raise TypeError(
            f'{MARKER_NAME} applied more than once to {target.__qualname__}'
        )
    setattr(target, MARKER_ATTRIBUTE, True)
    return func


def is_compile_time_executor(func) -> bool:
    """Return True if ``func`` carries the marker."""
    target = func.__func__ if isinstance(func, (staticmethod, classmethod)) else func
    return bool(getattr(target, MARKER_ATTRIBUTE, False))
