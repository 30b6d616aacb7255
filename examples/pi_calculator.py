"""
Example host module.

``Calculator.pi`` is slow and always returns the same string, so it is marked
for build-time evaluation. After running

    $ prebake examples --out examples/generated

importing the ``generated`` package attaches ``Calculator.pi_compile_time``,
which returns the same digits without computing them.
"""

import math

from prebake import compile_time_executor


class Calculator:

    @compile_time_executor
    def pi(self) -> str:
        """Digits of pi, computed with a spigot algorithm."""
        digits = 500
        size = digits * 10 // 3 + 2

        x = [20] * size
        r = [0] * size
        pi = [0] * digits

        for i in range(digits):
            carry = 0
            for j in range(size):
                num = size - j - 1
                dem = num * 2 + 1
                x[j] += carry
                q = x[j] // dem
                r[j] = x[j] % dem
                carry = q * num
            pi[i] = x[size - 1] // 10
            r[size - 1] = x[size - 1] % 10
            for j in range(size):
                x[j] = r[j] * 10

        result = ''
        c = 0
        for i in range(digits - 1, -1, -1):
            pi[i] += c
            c = pi[i] // 10
            result = str(pi[i] % 10) + result
        return result

    @compile_time_executor
    @staticmethod
    def primes() -> str:
        return ','.join(
            str(n) for n in range(2, 200)
            if all(n % d for d in range(2, math.isqrt(n) + 1))
        )
