"""
Tests for the generator (one full build pass).

Validates:
  - Exactly one generated source per marked function, plus the marker source
  - Scenarios: literal result, runtime fault, independent candidates
  - Semantic equivalence with calling the original function
  - Idempotence across passes and between sequential/parallel runs
  - Failure containment and duplicate-name rejection
"""

import logging

import pytest
from prebake.build.context import BuildContext, SyntaxUnit
from prebake.model import FAILURE_PREFIX
from prebake.pipeline.generator import DUPLICATE_MEMBER, Generator, GeneratorConfig
from prebake.pipeline.marker_provider import MARKER_HINT
from prebake.pipeline.sandbox import UNDEFINED_NAME


def attach(source):
    namespace = {}
    exec(compile(source, '<generated>', 'exec'), namespace)
    return namespace


def attach_all(context):
    for hint, source in context.sources:
        if hint != MARKER_HINT:
            attach(source)


GREETER = '''
from prebake import compile_time_executor


class Greeter:
    @compile_time_executor
    def greet(self) -> str:
        return "hi"

    def plain(self):
        return "not evaluated"
'''

MIXED = '''
import math
import statistics

from prebake import compile_time_executor


class Geometry:
    @compile_time_executor
    def circle_table(self) -> str:
        rows = []
        for r in range(1, 6):
            rows.append(f"{r}:{math.pi * r * r:.4f}")
        return ";".join(rows)

    @compile_time_executor
    def broken(self) -> int:
        return 1 // 0


class Stats:
    @compile_time_executor
    @staticmethod
    def summary() -> str:
        data = [2, 4, 4, 4, 5, 5, 7, 9]
        return f"{statistics.mean(data)} {statistics.pstdev(data)}"

    @compile_time_executor
    def needs_host(self):
        return HOST_CONSTANT * 2


HOST_CONSTANT = 21
'''


class TestGeneratorScenarios:
    def setup_method(self):
        self.generator = Generator()

    def test_greet_scenario(self, host):
        module, context = host(GREETER)
        report = self.generator.execute(context)

        assert report.candidates == 1
        assert report.succeeded == 1
        [unit] = report.units
        assert unit.hint_name == f'{module.__name__}_Greeter_greet.gen'
        assert "def greet_compile_time(self) -> str:\n    return 'hi'\n" in unit.source

        attach(unit.source)
        assert module.Greeter().greet_compile_time() == 'hi'
        assert not hasattr(module.Greeter, 'plain_compile_time')

    def test_marker_source_always_added(self, context_for):
        context = context_for('x = 1\n')
        report = self.generator.execute(context)
        assert report.candidates == 0
        assert report.units == []
        assert [hint for hint, _ in context.sources] == [MARKER_HINT]

    def test_one_unit_per_candidate(self, context_for):
        context = context_for(MIXED)
        report = self.generator.execute(context)
        assert report.candidates == 4
        assert len(report.units) == 4
        assert len({u.hint_name for u in report.units}) == 4
        assert len(context.sources) == 5

    def test_division_by_zero_scenario(self, host):
        module, context = host(MIXED)
        report = self.generator.execute(context)
        assert report.runtime_failures == 1

        attach_all(context)
        value = module.Geometry().broken_compile_time()
        assert value.startswith(FAILURE_PREFIX + 'ZeroDivisionError')
        assert 'by zero' in value

    def test_failure_containment(self, host):
        module, context = host(MIXED)
        report = self.generator.execute(context)
        assert report.compile_failures == 1
        assert report.succeeded == 2

        attach_all(context)
        failed = module.Stats().needs_host_compile_time()
        assert UNDEFINED_NAME in failed
        assert "'HOST_CONSTANT'" in failed
        assert module.Geometry().circle_table_compile_time() == module.Geometry().circle_table()
        assert module.Stats.summary_compile_time() == module.Stats.summary()

    def test_failed_units_are_flagged(self, context_for):
        report = self.generator.execute(context_for(MIXED))
        failed = sorted(u.identity[2] for u in report.units if u.failed)
        assert failed == ['broken', 'needs_host']
        assert report.failed == 2

    def test_independent_candidates_in_different_types(self, context_for):
        source = '''
        class A:
            @compile_time_executor
            def value(self):
                return 'a'

        class B:
            @compile_time_executor
            def value(self):
                return 'b'
        '''
        report = self.generator.execute(context_for(source))
        assert [u.hint_name for u in report.units] == [
            'pkg.host_A_value.gen', 'pkg.host_B_value.gen',
        ]
        assert "return 'a'" in report.units[0].source
        assert "return 'b'" in report.units[1].source


class TestGeneratorEquivalence:
    def test_matches_direct_invocation(self, host):
        source = '''
        import functools
        import itertools

        from prebake import compile_time_executor


        class Tables:
            @compile_time_executor
            def squares(self):
                return {n: n * n for n in range(6)}

            @compile_time_executor
            def pairs(self) -> str:
                return ' '.join(''.join(p) for p in itertools.permutations('abc', 2))

            @compile_time_executor
            @classmethod
            def product(cls):
                return functools.reduce(lambda a, b: a * b, range(1, 15))


        @compile_time_executor
        def collatz_lengths():
            def length(n):
                steps = 0
                while n != 1:
                    n = n // 2 if n % 2 == 0 else 3 * n + 1
                    steps += 1
                return steps
            return [length(n) for n in range(1, 20)]
        '''
        module, context = host(source)
        report = Generator().execute(context)
        assert report.succeeded == 4
        attach_all(context)

        tables = module.Tables()
        assert tables.squares_compile_time() == str(tables.squares())
        assert tables.pairs_compile_time() == str(tables.pairs())
        assert module.Tables.product_compile_time() == str(module.Tables.product())
        assert module.collatz_lengths_compile_time() == str(module.collatz_lengths())

    def test_annotations_inside_body_are_evaluated(self, host):
        source = '''
        from prebake import compile_time_executor


        class Shapes:
            @compile_time_executor
            def hints(self) -> str:
                def f(x: int) -> int:
                    return x
                return str(f.__annotations__)

            @compile_time_executor
            def fields(self) -> str:
                import dataclasses

                @dataclasses.dataclass
                class Point:
                    x: int
                    y: float = 0.0
                return str([(f.name, f.type) for f in dataclasses.fields(Point)])
        '''
        module, context = host(source)
        report = Generator().execute(context)
        assert report.succeeded == 2
        attach_all(context)

        shapes = module.Shapes()
        assert shapes.hints_compile_time() == shapes.hints()
        assert "<class 'int'>" in shapes.hints_compile_time()
        assert shapes.fields_compile_time() == shapes.fields()


class TestGeneratorDeterminism:
    def test_idempotent_passes(self, context_for):
        first = context_for(MIXED)
        second = context_for(MIXED)
        Generator().execute(first)
        Generator().execute(second)
        assert first.sources == second.sources

    def test_parallel_matches_sequential(self, context_for):
        sequential = context_for(MIXED)
        parallel = context_for(MIXED)
        Generator(workers=1).execute(sequential)
        report = Generator(workers=4).execute(parallel)
        assert parallel.sources == sequential.sources
        assert report.candidates == 4

    def test_nondeterministic_body_warns(self, context_for, caplog):
        source = '''
        class Clock:
            @compile_time_executor
            def stamp(self):
                import time
                return time.time()
        '''
        with caplog.at_level(logging.WARNING, logger='prebake'):
            report = Generator().execute(context_for(source))
        assert report.succeeded == 1
        assert 'may not be reproducible' in caplog.text
        assert 'time.time' in caplog.text

    def test_determinism_check_can_be_disabled(self, context_for, caplog):
        source = '''
        @compile_time_executor
        def roll():
            import random
            return random.randint(1, 6)
        '''
        with caplog.at_level(logging.WARNING, logger='prebake'):
            Generator(check_determinism=False).execute(context_for(source))
        assert 'may not be reproducible' not in caplog.text


class TestGeneratorDuplicates:
    def test_redefined_name_is_rejected(self, host):
        source = '''
        from prebake import compile_time_executor


        class Twice:
            @compile_time_executor
            def value(self):
                return 'first'

            @compile_time_executor
            def value(self):
                return 'second'

            @compile_time_executor
            def other(self):
                return 'fine'
        '''
        module, context = host(source)
        report = Generator().execute(context)

        assert report.duplicates == 2
        assert report.candidates == 3
        assert len(report.units) == 2
        attach_all(context)
        value = module.Twice().value_compile_time()
        assert value.startswith(FAILURE_PREFIX + DUPLICATE_MEMBER)
        assert 'declared 2 times' in value
        assert module.Twice().other_compile_time() == 'fine'

    def test_colliding_source_names_are_rejected(self):
        units = [
            SyntaxUnit.from_source('a_b', '@compile_time_executor\ndef c():\n    return 1\n'),
            SyntaxUnit.from_source('a', 'class b:\n    @compile_time_executor\n    def c(self):\n        return 2\n'),
        ]
        report = Generator().execute(BuildContext(units))
        [unit] = report.units
        assert unit.failed
        assert unit.hint_name == 'a_b_c.gen'


class TestGeneratorConfig:
    def test_defaults(self):
        config = GeneratorConfig()
        assert config.marker_name == 'compile_time_executor'
        assert config.suffix == '_compile_time'
        assert config.workers == 1
        assert config.check_determinism

    def test_overrides(self, context_for):
        generator = Generator(GeneratorConfig(workers=2), suffix='CompileTime')
        assert generator.config.workers == 2
        report = generator.execute(context_for(GREETER))
        assert 'def greetCompileTime(self) -> str:' in report.units[0].source

    def test_custom_marker(self, context_for):
        source = '''
        @bake
        def one():
            return 1
        '''
        report = Generator(marker_name='bake').execute(context_for(source))
        assert report.succeeded == 1

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            Generator(workers=0)

    def test_unknown_option(self):
        with pytest.raises(TypeError):
            Generator(colour='blue')
