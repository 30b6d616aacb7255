"""
Compare ``Calculator.pi`` with its build-time sibling.

    $ prebake examples --out examples/generated
    $ python examples/demo.py
"""

import generated  # noqa: F401  attaches the *_compile_time siblings
from pi_calculator import Calculator
from prebake.utils.helpers import Timer, format_ns


def main():
    calculator = Calculator()

    with Timer() as t:
        digits = calculator.pi()
    print(f"Pi calculated with {len(digits)} digits in {format_ns(t.elapsed_ns)}")

    with Timer() as t:
        digits = calculator.pi_compile_time()
    print(
        f"Pi calculated with {len(digits)} digits in {format_ns(t.elapsed_ns)} "
        f"(calculation performed during the build)"
    )


if __name__ == "__main__":
    main()
