"""
Build Context
=============

The surface prebake shares with the outer build:

- ``SyntaxUnit``: one parsed host module, read-only input to the pass.
- ``BuildContext``: the set of input units plus an append-only registry of
  generated sources. Registration is thread-safe so candidates can be
  evaluated on a worker pool.

The context never touches the filesystem after loading; writing generated
sources out is left to the driver (see ``prebake.cli``).
"""

import ast
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from prebake.errors import DuplicateSourceError, HostSyntaxError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyntaxUnit:
    """A parsed host module."""
    module: str
    path: str
    source: str
    tree: ast.Module = field(compare=False, repr=False)

    @classmethod
    def from_source(cls, module: str, source: str, path: Optional[str] = None) -> 'SyntaxUnit':
        path = path or f'<{module}>'
        try:
            tree = ast.parse(source, filename=path)
        except SyntaxError as exc:
            raise HostSyntaxError(path, exc) from exc
        return cls(module=module, path=path, source=source, tree=tree)

    @classmethod
    def from_file(cls, path: Path, root: Path) -> 'SyntaxUnit':
        source = path.read_text(encoding='utf-8')
        return cls.from_source(module_name_for(path, root), source, str(path))


def module_name_for(path: Path, root: Path) -> str:
    """Dotted module name of ``path`` relative to the source root."""
    parts = list(path.relative_to(root).with_suffix('').parts)
    if parts[-1] == '__init__':
        parts.pop()
    return '.'.join(parts)


class BuildContext:
    """
    Inputs and outputs of one build pass.

    Usage:
        >>> context = BuildContext.from_directory('src')
        >>> Generator().execute(context)
        >>> for hint, text in context.sources:
        ...     print(hint)
    """

    def __init__(self, units: Iterable[SyntaxUnit] = ()):
        self._units: Tuple[SyntaxUnit, ...] = tuple(units)
        self._sources: Dict[str, str] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_directory(cls, root, exclude: Iterable[str] = ()) -> 'BuildContext':
        """Parse every ``*.py`` module below ``root``."""
        root = Path(root).resolve()
        excluded = {Path(p).resolve() for p in exclude}
        units = []
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            dirnames[:] = sorted(
                d for d in dirnames
                if not d.startswith('.') and d != '__pycache__'
                and (current / d).resolve() not in excluded
            )
            for filename in sorted(filenames):
                path = current / filename
                if not filename.endswith('.py') or path.resolve() in excluded:
                    continue
                # The root's own __init__.py has no importable name
                if not module_name_for(path, root):
                    continue
                units.append(SyntaxUnit.from_file(path, root))
        logger.debug('Loaded %d modules from %s', len(units), root)
        return cls(units)

    @property
    def units(self) -> Tuple[SyntaxUnit, ...]:
        return self._units

    def add_source(self, hint_name: str, text: str) -> None:
        """Register a generated source. Each hint name may be added once."""
        with self._lock:
            if hint_name in self._sources:
                raise DuplicateSourceError(hint_name)
            self._sources[hint_name] = text
        logger.debug('Added source %s (%d chars)', hint_name, len(text))

    def get_source(self, hint_name: str) -> Optional[str]:
        with self._lock:
            return self._sources.get(hint_name)

    @property
    def sources(self) -> List[Tuple[str, str]]:
        """Generated sources sorted by hint name."""
        with self._lock:
            return sorted(self._sources.items())
