from __future__ import annotations

import math
import operator
import unittest

from pipefold import PLACEHOLDER, Pipe, _, call, compose, first_arg, map, opaque, pipe, reduce, substitute_at
from pipefold.ast import Block, Bound, Call, Infix, Lambda, Name, Number, Pipe as PipeNode, Placeholder, String
from pipefold.parser import parse
from pipefold.placeholder import PlaceholderType, contains_placeholder
from pipefold.rewrite import desugar, has_top_level_placeholder, rewrite_stage

choose = math.comb


class SyntaxRewriteTests(unittest.TestCase):
    def test_value_becomes_first_argument(self) -> None:
        self.assertEqual(desugar(parse("5 |> choose(3)")), Call(Name("choose"), (Number(5), Number(3))))

    def test_top_level_placeholder_disables_first_argument(self) -> None:
        self.assertEqual(desugar(parse("3 |> choose(5, .)")), Call(Name("choose"), (Number(5), Number(3))))

    def test_nested_placeholder_keeps_first_argument_rule(self) -> None:
        out = desugar(parse("5 |> choose(. - 2)"))
        self.assertEqual(out, Call(Name("choose"), (Number(5), Infix("-", Number(5), Number(2)))))

    def test_every_top_level_placeholder_is_replaced(self) -> None:
        self.assertEqual(desugar(parse("4 |> f(., 1, .)")), Call(Name("f"), (Number(4), Number(1), Number(4))))

    def test_bare_function_and_empty_call_are_equivalent(self) -> None:
        expected = Call(Name("f"), (Name("x"),))
        self.assertEqual(desugar(parse("x |> f")), expected)
        self.assertEqual(desugar(parse("x |> f()")), expected)

    def test_chains_are_left_associative(self) -> None:
        out = desugar(parse("x |> f |> g(1) |> h"))
        inner = Call(Name("g"), (Call(Name("f"), (Name("x"),)), Number(1)))
        self.assertEqual(out, Call(Name("h"), (inner,)))

    def test_opaque_block_substitutes_at_any_depth_without_fallback(self) -> None:
        out = desugar(parse("x |> { f(g(.), 1) }"))
        self.assertEqual(out, Call(Name("f"), (Call(Name("g"), (Name("x"),)), Number(1))))
        self.assertEqual(desugar(parse("x |> { f(1) }")), Call(Name("f"), (Number(1),)))

    def test_keyword_placeholder_counts_as_top_level(self) -> None:
        out = desugar(parse("x |> f(1, y = .)"))
        self.assertEqual(out, Call(Name("f"), (Number(1),), (("y", Name("x")),)))

    def test_lambda_bodies_and_blocks_in_arguments_are_untouched(self) -> None:
        out = desugar(parse("x |> f(\\(v) .)"))
        self.assertEqual(out, Call(Name("f"), (Name("x"), Lambda(("v",), Placeholder()))))
        out = desugar(parse("x |> f({ . })"))
        self.assertEqual(out, Call(Name("f"), (Name("x"), Block(Placeholder()))))

    def test_nested_pipe_binds_its_own_placeholder(self) -> None:
        out = desugar(parse('x |> f(. |> g("a", .))'))
        self.assertEqual(out, Call(Name("f"), (Name("x"), Call(Name("g"), (String("a"), Name("x"))))))

    def test_left_side_is_copied_into_each_placeholder(self) -> None:
        out = desugar(parse("g() |> f(., .)"))
        self.assertEqual(out, Call(Name("f"), (Call(Name("g")), Call(Name("g")))))

    def test_rewrite_stage_with_bound_value(self) -> None:
        stage = parse("f(.)")
        assert isinstance(stage, Call)
        self.assertTrue(has_top_level_placeholder(stage))
        self.assertEqual(rewrite_stage(Bound(7), stage), Call(Name("f"), (Bound(7),)))

    def test_pipe_node_shape(self) -> None:
        self.assertIsInstance(parse("1 |> f"), PipeNode)


class RuntimePlaceholderTests(unittest.TestCase):
    def test_first_argument_rule(self) -> None:
        self.assertEqual(pipe(5, call(choose, 3)), choose(5, 3))

    def test_explicit_placeholder(self) -> None:
        self.assertEqual(pipe(3, call(choose, 5, _)), choose(5, 3))

    def test_nested_placeholder_expression(self) -> None:
        self.assertEqual(pipe(5, call(choose, _ - 2)), choose(5, 3))

    def test_multiple_placeholders_reuse_value(self) -> None:
        self.assertEqual(pipe(4, call(lambda a, b: a * 10 + b, _, _)), 44)

    def test_keyword_placeholder(self) -> None:
        self.assertEqual(pipe(5, call(lambda a=0, b=0: a - b, a=1, b=_)), -4)

    def test_bare_callable_and_zero_argument_template(self) -> None:
        self.assertEqual(pipe(-3, abs), 3)
        self.assertEqual(pipe(-3, call(abs)), 3)

    def test_nested_template_is_substituted_but_not_prepended(self) -> None:
        self.assertEqual(pipe(4, call(operator.add, call(operator.mul, _, 10))), 44)

    def test_opaque_block(self) -> None:
        self.assertEqual(pipe(10, opaque(call(choose, _, 3))), 120)
        self.assertEqual(pipe(10, opaque(call(operator.sub, call(choose, _, 3), _))), 110)
        self.assertEqual(pipe(10, opaque(call(lambda: 7))), 7)
        self.assertEqual(pipe(10, opaque(lambda v: v * 2)), 20)
        self.assertEqual(pipe(10, opaque([_, _ + 1])), [10, 11])

    def test_deferred_expression_as_stage(self) -> None:
        self.assertEqual(pipe(3, _ * 2, 1 - _), -5)
        self.assertEqual(pipe([4, 5], _[0]), 4)

    def test_comparison_placeholders(self) -> None:
        self.assertEqual(pipe(5, call(lambda a, b: (a, b), _ > 2)), (5, True))
        self.assertIs(pipe(5, _ < 2), False)
        self.assertIs(pipe(2, 2 <= _), True)
        self.assertIs(pipe(1, _ >= 3), False)

    def test_pipe_wrapper_chains_eagerly_left_to_right(self) -> None:
        seen: list[str] = []

        def step(name):
            def run(value):
                seen.append(name)
                return value + name

            return run

        out = Pipe("") | step("f") | step("g") | step("h")
        self.assertEqual(out.value, "fgh")
        self.assertEqual(seen, ["f", "g", "h"])
        self.assertEqual((Pipe(2) | call(operator.add, 3) | call(operator.mul, _, 10)).value, 50)

    def test_pipeline_over_combinators(self) -> None:
        out = pipe([1, 2, 3], call(map, lambda x: x + 1), call(reduce, operator.add))
        self.assertEqual(out, 9)

    def test_adapters(self) -> None:
        self.assertEqual(first_arg(operator.sub, 1)(10), 9)
        self.assertEqual(substitute_at(operator.sub, 1, _)(10), -9)
        self.assertEqual(substitute_at(lambda a, b=0: a + b, 1, b=PLACEHOLDER)(5), 6)

    def test_compose_is_left_to_right(self) -> None:
        self.assertEqual(compose(lambda x: x + 1, lambda x: x * 10)(1), 20)
        self.assertEqual(compose()(5), 5)

    def test_placeholder_is_a_singleton(self) -> None:
        self.assertIs(PlaceholderType(), PLACEHOLDER)
        self.assertIs(_, PLACEHOLDER)
        self.assertEqual(repr(_), "_")
        self.assertTrue(contains_placeholder(call(abs, _ + 1)))
        self.assertFalse(contains_placeholder(call(abs, 1)))

    def test_non_callable_stage_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            pipe(1, 5)


if __name__ == "__main__":
    unittest.main()
