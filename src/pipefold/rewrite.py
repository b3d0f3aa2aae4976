"""Syntax-level pipe rewriting.

``rewrite_stage(lhs, stage)`` turns one ``lhs |> stage`` into a plain call:

* ``lhs |> f``            -> ``f(lhs)``
* ``lhs |> f(a, b)``      -> ``f(lhs, a, b)``
* ``lhs |> f(a, ., .)``   -> ``f(a, lhs, lhs)``
* ``lhs |> f(. - 2)``     -> ``f(lhs, lhs - 2)``
* ``lhs |> { g(f(.)) }``  -> ``g(f(lhs))``

Only a bare ``.`` directly in the argument list turns off first-argument
insertion. Lambda bodies, blocks and the stages of nested pipes bind their own
placeholder and are left untouched.
"""

from __future__ import annotations

from .ast import Assign, Block, Call, Expr, Infix, Lambda, Pipe, Placeholder, Prefix, Program, Vector


def has_top_level_placeholder(call: Call) -> bool:
    if any(isinstance(arg, Placeholder) for arg in call.args):
        return True
    return any(isinstance(arg, Placeholder) for _, arg in call.kwargs)


def substitute(expr: Expr, value: Expr) -> Expr:
    if isinstance(expr, Placeholder):
        return value
    if isinstance(expr, Call):
        return Call(
            func=substitute(expr.func, value),
            args=tuple(substitute(arg, value) for arg in expr.args),
            kwargs=tuple((name, substitute(arg, value)) for name, arg in expr.kwargs),
        )
    if isinstance(expr, Infix):
        return Infix(op=expr.op, left=substitute(expr.left, value), right=substitute(expr.right, value))
    if isinstance(expr, Prefix):
        return Prefix(op=expr.op, right=substitute(expr.right, value))
    if isinstance(expr, Vector):
        return Vector(items=tuple(substitute(item, value) for item in expr.items))
    if isinstance(expr, Pipe):
        return Pipe(left=substitute(expr.left, value), stage=expr.stage)
    return expr


def rewrite_stage(lhs: Expr, stage: Expr) -> Expr:
    if isinstance(stage, Block):
        return substitute(stage.body, lhs)
    if isinstance(stage, Call):
        rewritten = substitute(stage, lhs)
        assert isinstance(rewritten, Call)
        if has_top_level_placeholder(stage):
            return rewritten
        return Call(func=rewritten.func, args=(lhs,) + rewritten.args, kwargs=rewritten.kwargs)
    return Call(func=stage, args=(lhs,))


def desugar(expr: Expr) -> Expr:
    """Rewrite every pipe inside ``expr`` into direct calls, innermost first.

    The rewrite is purely syntactic: a left side used at several placeholder
    positions is copied into each of them, so evaluating the result may
    evaluate it more than once. ``evaluate`` binds the left side to a
    ``Bound`` value first and does not go through this function.
    """
    if isinstance(expr, Pipe):
        return rewrite_stage(desugar(expr.left), desugar(expr.stage))
    if isinstance(expr, Call):
        return Call(
            func=desugar(expr.func),
            args=tuple(desugar(arg) for arg in expr.args),
            kwargs=tuple((name, desugar(arg)) for name, arg in expr.kwargs),
        )
    if isinstance(expr, Infix):
        return Infix(op=expr.op, left=desugar(expr.left), right=desugar(expr.right))
    if isinstance(expr, Prefix):
        return Prefix(op=expr.op, right=desugar(expr.right))
    if isinstance(expr, Vector):
        return Vector(items=tuple(desugar(item) for item in expr.items))
    if isinstance(expr, Block):
        return Block(body=desugar(expr.body))
    if isinstance(expr, Lambda):
        return Lambda(params=expr.params, body=desugar(expr.body))
    if isinstance(expr, Assign):
        return Assign(name=expr.name, value=desugar(expr.value))
    if isinstance(expr, Program):
        return Program(statements=tuple(desugar(stmt) for stmt in expr.statements))
    return expr
