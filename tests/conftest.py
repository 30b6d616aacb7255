"""Shared fixtures: host modules that generated sources can import."""

import logging
import sys
import textwrap
import types
import uuid

import pytest

from prebake.build.context import BuildContext, SyntaxUnit


@pytest.fixture
def host():
    """
    Factory that executes host source as a uniquely named module.

    Returns (module, context); the context holds the same source under the
    same module name, so generated siblings attach to the live module.
    """
    created = []

    def load(source):
        name = f'prebake_host_{uuid.uuid4().hex}'
        source = textwrap.dedent(source)
        module = types.ModuleType(name)
        sys.modules[name] = module
        created.append(name)
        exec(compile(source, f'<{name}>', 'exec'), module.__dict__)
        context = BuildContext([SyntaxUnit.from_source(name, source)])
        return module, context

    yield load
    for name in created:
        sys.modules.pop(name, None)


@pytest.fixture
def context_for():
    """Build a context from source without executing it."""
    def make(source, module='pkg.host'):
        return BuildContext([SyntaxUnit.from_source(module, textwrap.dedent(source))])
    return make


@pytest.fixture
def restore_prebake_logger():
    pkg_logger = logging.getLogger('prebake')
    handlers = pkg_logger.handlers[:]
    level = pkg_logger.level
    propagate = pkg_logger.propagate
    yield pkg_logger
    for h in pkg_logger.handlers[:]:
        if h not in handlers:
            pkg_logger.removeHandler(h)
    pkg_logger.setLevel(level)
    pkg_logger.propagate = propagate
