from __future__ import annotations

import logging
import unittest

from pipefold import (
    EmptyInputNoInit,
    PipeParseError,
    PipeRuntimeError,
    Seq,
    UndefinedNameError,
    _,
    call,
    evaluate,
    evaluate_with_errors,
    pipe,
    setup_logger,
)


class EvaluatePipeTests(unittest.TestCase):
    def test_first_argument_and_placeholder_forms(self) -> None:
        self.assertEqual(evaluate("5 |> choose(3)"), 10)
        self.assertEqual(evaluate("3 |> choose(5, .)"), 10)
        self.assertEqual(evaluate("5 |> choose(. - 2)"), 10)
        self.assertEqual(evaluate("10 |> { choose(., 3) - . }"), 110)

    def test_pipe_binds_loosest(self) -> None:
        self.assertEqual(evaluate('1 + 2 |> paste("x")'), "3 x")

    def test_left_side_is_evaluated_once(self) -> None:
        calls: list[int] = []

        def tick():
            calls.append(1)
            return len(calls)

        self.assertEqual(evaluate("tick() |> paste(., .)", env={"tick": tick}), "1 1")
        self.assertEqual(len(calls), 1)

    def test_combinator_pipelines(self) -> None:
        self.assertEqual(evaluate("c(1, 2, 3) |> map(\\(x) x * 2)"), [2, 4, 6])
        self.assertEqual(evaluate("seq(1, 10) |> keep(\\(x) x % 2 == 0) |>\n  reduce(\\(a, b) a + b)"), 30)
        self.assertEqual(evaluate("[1, 2] |> map({ . + 10 })"), [11, 12])
        self.assertEqual(evaluate('c(1, 2, 3) |> detect(\\(x) x > 1, direction = "backward")'), 3)
        self.assertEqual(evaluate('record(a = record(b = 5)) |> pluck("a", "b")'), 5)
        self.assertEqual(evaluate("seq(1, 10) |> reduce(\\(a, x) done(a + x))"), 3)

    def test_builtins(self) -> None:
        out = evaluate("seq(3, 1)")
        self.assertIsInstance(out, Seq)
        self.assertEqual(out, [3, 2, 1])
        self.assertEqual(evaluate("record(a = 1)"), {"a": 1})
        self.assertEqual(evaluate('paste("a", "b", sep = "-")'), "a-b")
        self.assertEqual(evaluate('"abc" |> upper'), "ABC")
        self.assertIs(evaluate("null"), None)
        self.assertEqual(evaluate("c(1, 2) |> length"), 2)

    def test_program_assignments_and_closures(self) -> None:
        self.assertEqual(evaluate("x <- 2; y <- x + 3; y * 10"), 50)
        self.assertEqual(evaluate("k <- 10\nadd_k <- \\(x) x + k\n5 |> add_k"), 15)

    def test_env_is_not_mutated(self) -> None:
        env = {"x": 3, "f": lambda v: v + 1}
        self.assertEqual(evaluate("x |> f", env=env), 4)
        self.assertEqual(evaluate("x <- 99; x", env=env), 99)
        self.assertEqual(env["x"], 3)

    def test_env_shadows_builtins(self) -> None:
        self.assertEqual(evaluate("c(1)", env={"c": lambda *a: "mine"}), "mine")

    def test_short_circuit_logic(self) -> None:
        def boom():
            raise AssertionError("right side must not run")

        env = {"boom": boom}
        self.assertIs(evaluate("false && boom()", env=env), False)
        self.assertIs(evaluate("true || boom()", env=env), True)
        self.assertIs(evaluate("true && 1 < 2", env=env), True)

    def test_undefined_names(self) -> None:
        with self.assertRaises(UndefinedNameError):
            evaluate("nope")
        with self.assertRaises(NameError):
            evaluate(". + 1")

    def test_lambda_arity(self) -> None:
        with self.assertRaises(TypeError):
            evaluate("(\\(x) x)(1, 2)")
        with self.assertRaises(TypeError):
            evaluate("(\\(x) x)(y = 1)")
        self.assertEqual(evaluate("(\\(a, b) a - b)(b = 1, a = 5)"), 4)


class EvaluateWithErrorsTests(unittest.TestCase):
    def test_parse_errors_are_structured(self) -> None:
        with self.assertRaises(PipeParseError) as ctx:
            evaluate_with_errors("1 +")
        err = ctx.exception
        self.assertEqual((err.start, err.end), (3, 3))
        self.assertEqual(err.found, "EOF")

    def test_combinator_errors_pass_through(self) -> None:
        with self.assertRaises(EmptyInputNoInit):
            evaluate_with_errors("c() |> reduce(\\(a, b) a + b)")

    def test_name_errors_are_classified(self) -> None:
        with self.assertRaises(UndefinedNameError):
            evaluate_with_errors("undefined_fn(1)")

    def test_other_runtime_errors_are_wrapped(self) -> None:
        with self.assertRaises(PipeRuntimeError) as ctx:
            evaluate_with_errors("1 |> 2")
        self.assertIsInstance(ctx.exception.__cause__, TypeError)
        with self.assertRaises(PipeRuntimeError):
            evaluate_with_errors("1 / 0")

    def test_success_returns_value(self) -> None:
        self.assertEqual(evaluate_with_errors("x |> abs", env={"x": -2}), 2)


class LoggingTests(unittest.TestCase):
    def test_pipe_stages_log_at_debug(self) -> None:
        with self.assertLogs("pipefold.placeholder", level="DEBUG") as logs:
            pipe(5, call(max, _, 3))
        self.assertIn("pipe stage max bound", logs.output[0])

        with self.assertLogs("pipefold.evaluator", level="DEBUG") as logs:
            evaluate("1 |> abs")
        self.assertIn("rewritten", logs.output[0])

    def test_setup_logger_attaches_one_stream_handler(self) -> None:
        name = "pipefold.tests.setup"
        logger = setup_logger(name, level="info")
        try:
            setup_logger(name, level="debug")
            handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
            self.assertEqual(len(handlers), 1)
            self.assertEqual(logger.level, logging.DEBUG)
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)


if __name__ == "__main__":
    unittest.main()
