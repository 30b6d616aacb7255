"""
Marker Definition Provider
==========================

Adds the source of ``prebake.marker`` to every pass, whether or not any
candidate was found, so the generated package always carries a definition of
the decorator that its host modules can import.
"""

import inspect

from prebake import marker
from prebake.build.context import BuildContext
from prebake.pipeline.emitter import HEADER

MARKER_HINT = 'prebake_marker'


class MarkerDefinitionProvider:

    def __init__(self):
        self.source = HEADER.format(origin=marker.__name__) + inspect.getsource(marker)

    def provide(self, context: BuildContext) -> None:
        context.add_source(MARKER_HINT, self.source)
