from __future__ import annotations

import math
import unittest

from pipefold import _, accumulate, call, cross_to_table, done, evaluate, keep, map_int, pipe, reduce
from pipefold.values import ElementKind


class ReadmeExamplesTests(unittest.TestCase):
    """Coverage for the README example blocks."""

    def test_readme_python_block(self) -> None:
        self.assertEqual(pipe(5, call(math.comb, 3)), 10)
        self.assertEqual(pipe(3, call(math.comb, 5, _)), 10)
        self.assertEqual(pipe(5, call(math.comb, _ - 2)), 10)

        squares = map_int([1, 2, 3], lambda x: x * x)
        self.assertEqual(squares, [1, 4, 9])
        self.assertIs(squares.kind, ElementKind.INT)
        self.assertEqual(keep({"a": 1, "b": 2, "c": 3}, lambda v: v % 2 == 1), {"a": 1, "c": 3})
        self.assertEqual(reduce([1, 2, 3, 4], lambda acc, x: done(acc) if x == 3 else acc + x), 3)
        self.assertEqual(accumulate(["a", "b", "c"], lambda x, acc: x + acc, direction="backward"), ["abc", "bc", "c"])
        self.assertEqual(cross_to_table(size=["S", "L"], hot=[True, False]).shape, (4, 2))

    def test_readme_evaluate_block(self) -> None:
        cases = [
            ("5 |> choose(3)", None, 10),
            ("seq(1, 10) |> keep(\\(x) x % 2 == 0) |> reduce(\\(a, b) a + b)", None, 30),
            ("10 |> { choose(., 3) - . }", None, 110),
            ("x |> f", {"x": 3, "f": lambda v: v + 1}, 4),
        ]
        for source, env, expected in cases:
            with self.subTest(source=source):
                self.assertEqual(evaluate(source, env=env), expected)


if __name__ == "__main__":
    unittest.main()
