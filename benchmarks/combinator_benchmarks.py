"""Benchmark the combinators directly and through pipe-expression evaluation."""

from __future__ import annotations

import argparse
import json
import operator
import platform
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

import jax
import numpy as np

import pipefold as pf


PROFILE_CONFIG: dict[str, dict[str, float | int]] = {
    "quick": {"samples": 3, "warmup": 1, "repeat_scale": 0.25, "target_sample_ms": 10.0, "min_repeats": 4, "cv_target_pct": 25.0, "max_samples": 7},
    "full": {"samples": 7, "warmup": 2, "repeat_scale": 1.0, "target_sample_ms": 20.0, "min_repeats": 8, "cv_target_pct": 18.0, "max_samples": 11},
}
SECTIONS = ("python", "language")


@dataclass(frozen=True)
class BenchCase:
    section: str
    name: str
    label: str
    build: Callable[[int], Callable[[], object]]


@dataclass(frozen=True)
class BenchRow:
    section: str
    name: str
    label: str
    n: int
    status: str
    first_call_ms: float | None
    mean_ms: float | None
    stdev_ms: float | None
    cv_pct: float | None
    p50_ms: float | None
    p95_ms: float | None
    repeats: int
    samples: int
    error: str | None


def _sizes_from_arg(raw: str) -> tuple[int, ...]:
    out = tuple(int(part.strip()) for part in raw.split(",") if part.strip())
    if not out:
        raise ValueError("at least one size must be provided")
    return out


def _repeats_for_n(n: int, repeat_scale: float) -> int:
    if n <= 10:
        base = 200
    elif n <= 1000:
        base = 20
    else:
        base = 4
    return max(1, int(round(base * repeat_scale)))


def _settle(value: object) -> object:
    if isinstance(value, jax.Array):
        value.block_until_ready()
    return value


def _calibrate_repeats(fn: Callable[[], object], *, baseline: int, target_sample_ms: float, min_repeats: int) -> int:
    trial = max(4, min_repeats)
    start_ns = time.perf_counter_ns()
    for _ in range(trial):
        _settle(fn())
    per_call_ns = max((time.perf_counter_ns() - start_ns) / trial, 1_000.0)
    wanted = int(np.ceil(max(target_sample_ms, 1.0) * 1e6 / per_call_ns))
    return max(baseline, min_repeats, min(wanted, 100_000))


def _sample_ms(fn: Callable[[], object], *, repeats: int, samples: int, cv_target_pct: float, max_samples: int) -> np.ndarray:
    """Per-call milliseconds, one entry per sample; extra samples until the CV settles."""
    rows: list[float] = []
    while True:
        start_ns = time.perf_counter_ns()
        for _ in range(repeats):
            _settle(fn())
        rows.append((time.perf_counter_ns() - start_ns) / repeats / 1e6)
        if len(rows) < samples:
            continue
        if len(rows) >= max_samples or _cv_pct(np.asarray(rows)) <= cv_target_pct:
            return np.asarray(rows)


def _cv_pct(per_call_ms: np.ndarray) -> float:
    if per_call_ms.size < 2 or per_call_ms.mean() <= 0:
        return 0.0
    return float(per_call_ms.std(ddof=1) / per_call_ms.mean() * 100.0)


def _ints(n: int) -> pf.Seq:
    return pf.Seq(range(1, n + 1), "int")


def _python_case(name: str, label: str, make: Callable[[pf.Seq], Callable[[], object]]) -> BenchCase:
    return BenchCase("python", name, label, lambda n: make(_ints(n)))


def _language_case(name: str, source: str) -> BenchCase:
    def build(n: int) -> Callable[[], object]:
        env = {"xs": _ints(n)}
        return lambda: pf.evaluate(source, env=env)

    return BenchCase("language", name, source, build)


def _all_cases() -> list[BenchCase]:
    square = lambda x: x * x  # noqa: E731
    is_even = lambda x: x % 2 == 0  # noqa: E731
    return [
        _python_case("map", "map(xs, square)", lambda xs: lambda: pf.map(xs, square)),
        _python_case("map_int", "map_int(xs, square)", lambda xs: lambda: pf.map_int(xs, square)),
        _python_case("keep", "keep(xs, is_even)", lambda xs: lambda: pf.keep(xs, is_even)),
        _python_case("reduce", "reduce(xs, add)", lambda xs: lambda: pf.reduce(xs, operator.add)),
        _python_case("accumulate", "accumulate(xs, add)", lambda xs: lambda: pf.accumulate(xs, operator.add)),
        _python_case("modify_at", "modify_at(xs, [1, n], neg)", lambda xs: lambda: pf.modify_at(xs, [1, len(xs)], operator.neg)),
        _python_case("cross", "cross(xs[:32], xs[:32])", lambda xs: lambda: pf.cross(xs[:32], xs[:32])),
        _python_case(
            "pipe",
            "pipe(xs, call(map, square), call(reduce, add))",
            lambda xs: lambda: pf.pipe(xs, pf.call(pf.map, square), pf.call(pf.reduce, operator.add)),
        ),
        _python_case("to_array", "map_float(xs, float).to_array()", lambda xs: lambda: pf.map_float(xs, float).to_array()),
        _language_case("eval_map", "xs |> map(\\(x) x * x)"),
        _language_case("eval_fold", "xs |> keep(\\(x) x % 2 == 0) |> reduce(\\(a, b) a + b)"),
        _language_case("eval_block", "xs |> { length(.) + 1 }"),
    ]


def _run_case(
    case: BenchCase,
    n: int,
    *,
    samples: int,
    warmup: int,
    repeat_scale: float,
    target_sample_ms: float,
    min_repeats: int,
    cv_target_pct: float,
    max_samples: int,
) -> BenchRow:
    baseline_repeats = _repeats_for_n(n, repeat_scale)
    try:
        fn = case.build(n)
        t0 = time.perf_counter()
        _settle(fn())
        first_ms = (time.perf_counter() - t0) * 1e3
        for _ in range(warmup):
            _settle(fn())

        repeats = _calibrate_repeats(fn, baseline=baseline_repeats, target_sample_ms=target_sample_ms, min_repeats=min_repeats)
        per_call_ms = _sample_ms(fn, repeats=repeats, samples=samples, cv_target_pct=cv_target_pct, max_samples=max_samples)
        p50_ms, p95_ms = np.percentile(per_call_ms, [50, 95])
        return BenchRow(
            section=case.section,
            name=case.name,
            label=case.label,
            n=n,
            status="ok",
            first_call_ms=first_ms,
            mean_ms=float(per_call_ms.mean()),
            stdev_ms=float(per_call_ms.std(ddof=1)) if per_call_ms.size > 1 else 0.0,
            cv_pct=_cv_pct(per_call_ms),
            p50_ms=float(p50_ms),
            p95_ms=float(p95_ms),
            repeats=repeats,
            samples=int(per_call_ms.size),
            error=None,
        )
    except Exception as err:  # pragma: no cover - benchmark resilience
        return BenchRow(
            section=case.section,
            name=case.name,
            label=case.label,
            n=n,
            status="error",
            first_call_ms=None,
            mean_ms=None,
            stdev_ms=None,
            cv_pct=None,
            p50_ms=None,
            p95_ms=None,
            repeats=baseline_repeats,
            samples=samples,
            error=f"{type(err).__name__}: {err}",
        )


def _print_summary(rows: list[BenchRow]) -> None:
    print("combinator benchmark summary")
    print("section    case          n      mean(ms)   p95(ms)   cv(%)   status")
    print("--------   ----------  ------  ---------  --------  ------  ------")
    for row in rows:
        mean_text = "-" if row.mean_ms is None else f"{row.mean_ms:9.4f}"
        p95_text = "-" if row.p95_ms is None else f"{row.p95_ms:8.4f}"
        cv_text = "-" if row.cv_pct is None else f"{row.cv_pct:6.2f}"
        print(f"{row.section:8} {row.name:12} {row.n:6d}  {mean_text:>9}  {p95_text:>8}  {cv_text:>6}  {row.status}")
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--profile", choices=sorted(PROFILE_CONFIG), default="quick", help="fixed benchmark profile presets")
    parser.add_argument("--ns", default="10,1000,10000", help="comma-separated n sizes")
    parser.add_argument("--sections", default=",".join(SECTIONS), help="comma-separated subset of sections")
    parser.add_argument("--samples", type=int, default=None, help="timing samples per case")
    parser.add_argument("--warmup", type=int, default=None, help="warmup rounds before timing")
    parser.add_argument("--repeat-scale", type=float, default=None, help="scale factor for repeat counts")
    parser.add_argument("--json-out", default="", help="optional path for machine-readable output")
    parser.add_argument("--log-level", default=None, help="enable pipefold logging at this level")
    args = parser.parse_args()
    if args.log_level:
        pf.setup_logger(level=args.log_level)

    profile = PROFILE_CONFIG[args.profile]
    samples = int(profile["samples"] if args.samples is None else args.samples)
    warmup = int(profile["warmup"] if args.warmup is None else args.warmup)
    repeat_scale = float(profile["repeat_scale"] if args.repeat_scale is None else args.repeat_scale)
    max_samples = max(samples, int(profile["max_samples"]))

    ns = _sizes_from_arg(args.ns)
    wanted_sections = {part.strip() for part in args.sections.split(",") if part.strip()}
    unknown = wanted_sections - set(SECTIONS)
    if unknown:
        raise SystemExit(f"Unknown sections: {sorted(unknown)}")

    cases = [case for case in _all_cases() if case.section in wanted_sections]
    print(f"sizes: {ns}")
    print(f"profile: {args.profile} (samples={samples}, warmup={warmup}, repeat_scale={repeat_scale:.3f})")
    print(f"host: backend={jax.default_backend()}, jax={jax.__version__}")
    print()

    rows: list[BenchRow] = []
    for n in ns:
        for case in cases:
            rows.append(
                _run_case(
                    case,
                    n,
                    samples=samples,
                    warmup=warmup,
                    repeat_scale=repeat_scale,
                    target_sample_ms=float(profile["target_sample_ms"]),
                    min_repeats=int(profile["min_repeats"]),
                    cv_target_pct=float(profile["cv_target_pct"]),
                    max_samples=max_samples,
                )
            )
        print(f"completed n={n} ({len(cases)} cases)")

    print()
    _print_summary(rows)

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "timestamp_utc": datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ"),
            "sizes": list(ns),
            "profile": args.profile,
            "sections": sorted(wanted_sections),
            "host": {"platform": platform.platform(), "python": platform.python_version(), "jax": jax.__version__, "backend": jax.default_backend()},
            "rows": [asdict(row) for row in rows],
        }
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote JSON: {outpath}")


if __name__ == "__main__":
    main()
