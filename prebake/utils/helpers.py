"""Utility helpers for prebake."""

import time


class Timer:
    """Wall-clock timer for pass and per-candidate logging."""

    def __init__(self):
        self.start_ns = 0
        self.end_ns = 0

    def __enter__(self):
        self.start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, *exc):
        self.end_ns = time.perf_counter_ns()

    @property
    def elapsed_ns(self) -> int:
        return self.end_ns - self.start_ns

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_ns / 1_000_000.0


def format_ns(ns: float) -> str:
    """Format nanoseconds into a human-readable string."""
    if ns < 1_000:
        return f"{ns:.0f} ns"
    elif ns < 1_000_000:
        return f"{ns / 1_000:.1f} µs"
    elif ns < 1_000_000_000:
        return f"{ns / 1_000_000:.2f} ms"
    else:
        return f"{ns / 1_000_000_000:.3f} s"


def module_filename(hint_name: str) -> str:
    """
    File name for a generated source on disk.

    Hint names may contain dots (``pkg.calc_Calculator_pi.gen``). The
    mapping is one-to-one so distinct hints never share a file:

        _  -> __
        .  -> _0
        any other character that cannot appear in a module name
           -> _x<hex code point>_

    ``pkg.calc_pi.gen`` becomes ``pkg_0calc__pi_0gen.py`` and
    ``pkg_calc_pi.gen`` becomes ``pkg__calc__pi_0gen.py``.
    """
    parts = []
    for i, ch in enumerate(hint_name):
        if ch == '_':
            parts.append('__')
        elif ch == '.':
            parts.append('_0')
        elif ('x' + ch).isidentifier() and not (i == 0 and ch.isdigit()):
            parts.append(ch)
        else:
            parts.append(f'_x{ord(ch):x}_')
    return ''.join(parts) + '.py'
