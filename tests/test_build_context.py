"""
Tests for the build context.

Validates:
  - Host modules are discovered with their dotted names
  - Hidden, cache and excluded directories are skipped
  - Unparseable hosts raise HostSyntaxError
  - Generated sources are unique, sorted and safe to add from threads
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from prebake.build.context import BuildContext, SyntaxUnit, module_name_for
from prebake.errors import DuplicateSourceError, HostSyntaxError


def write(root, relative, text='x = 1\n'):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path


class TestModuleNames:
    @pytest.mark.parametrize('relative, expected', [
        ('calc.py', 'calc'),
        ('shapes/circle.py', 'shapes.circle'),
        ('shapes/__init__.py', 'shapes'),
        ('a/b/c/d.py', 'a.b.c.d'),
    ])
    def test_module_name_for(self, relative, expected):
        root = Path('/src')
        assert module_name_for(root / relative, root) == expected


class TestSyntaxUnit:
    def test_from_source(self):
        unit = SyntaxUnit.from_source('pkg.calc', 'x = 1\n')
        assert unit.module == 'pkg.calc'
        assert unit.path == '<pkg.calc>'
        assert unit.tree.body

    def test_syntax_error(self):
        with pytest.raises(HostSyntaxError) as info:
            SyntaxUnit.from_source('pkg.bad', 'def broken(:\n', path='bad.py')
        assert info.value.path == 'bad.py'
        assert str(info.value).startswith('bad.py:1:')
        assert isinstance(info.value.error, SyntaxError)

    def test_from_file(self, tmp_path):
        path = write(tmp_path, 'pkg/calc.py', 'PI = 3\n')
        unit = SyntaxUnit.from_file(path, tmp_path)
        assert unit.module == 'pkg.calc'
        assert unit.path == str(path)
        assert unit.source == 'PI = 3\n'


class TestFromDirectory:
    def test_discovers_modules_in_order(self, tmp_path):
        write(tmp_path, 'zeta.py')
        write(tmp_path, 'alpha.py')
        write(tmp_path, 'pkg/__init__.py')
        write(tmp_path, 'pkg/inner.py')
        write(tmp_path, 'notes.txt')
        context = BuildContext.from_directory(tmp_path)
        assert [u.module for u in context.units] == ['alpha', 'zeta', 'pkg', 'pkg.inner']

    def test_skips_hidden_cache_and_root_init(self, tmp_path):
        write(tmp_path, '__init__.py')
        write(tmp_path, '.venv/site.py')
        write(tmp_path, '__pycache__/calc.py')
        write(tmp_path, 'calc.py')
        context = BuildContext.from_directory(tmp_path)
        assert [u.module for u in context.units] == ['calc']

    def test_exclude(self, tmp_path):
        write(tmp_path, 'calc.py')
        write(tmp_path, 'generated/out.py')
        write(tmp_path, 'skip.py')
        context = BuildContext.from_directory(
            tmp_path, exclude=[tmp_path / 'generated', tmp_path / 'skip.py'],
        )
        assert [u.module for u in context.units] == ['calc']

    def test_syntax_error_propagates(self, tmp_path):
        write(tmp_path, 'calc.py')
        write(tmp_path, 'broken.py', 'class :\n')
        with pytest.raises(HostSyntaxError):
            BuildContext.from_directory(tmp_path)


class TestGeneratedSources:
    def setup_method(self):
        self.context = BuildContext()

    def test_add_and_get(self):
        self.context.add_source('a.gen', 'text')
        assert self.context.get_source('a.gen') == 'text'
        assert self.context.get_source('missing.gen') is None

    def test_duplicate_rejected(self):
        self.context.add_source('a.gen', 'first')
        with pytest.raises(DuplicateSourceError) as info:
            self.context.add_source('a.gen', 'second')
        assert info.value.hint_name == 'a.gen'
        assert self.context.get_source('a.gen') == 'first'

    def test_sources_sorted(self):
        for name in ['c.gen', 'a.gen', 'b.gen']:
            self.context.add_source(name, name.upper())
        assert self.context.sources == [
            ('a.gen', 'A.GEN'), ('b.gen', 'B.GEN'), ('c.gen', 'C.GEN'),
        ]

    def test_concurrent_adds(self):
        names = [f'unit_{i:03d}.gen' for i in range(200)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda n: self.context.add_source(n, n), names))
        assert [name for name, _ in self.context.sources] == names

    def test_units_are_read_only(self):
        context = BuildContext([SyntaxUnit.from_source('m', 'x = 1\n')])
        assert isinstance(context.units, tuple)
        assert context.units[0].module == 'm'
