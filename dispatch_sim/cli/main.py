"""``dispatch-sim`` command line: validate, run, batch-run and compare."""

from __future__ import annotations

import argparse
import copy
from typing import Any

from dispatch_sim.analysis import build_audit_report, build_compare_report, compare_report_to_rows
from dispatch_sim.core import DispatchEngine
from dispatch_sim.io import (
    ConfigError,
    ConfigLoader,
    ExperimentRunner,
    build_default_payload,
    read_json_object,
    write_events_csv,
    write_json,
    write_jsonl,
    write_rows_csv,
)
from dispatch_sim.logging_config import setup_logging
from dispatch_sim.model import ModelSpec
from dispatch_sim.sinks import ConsoleSink, ISnapshotSink, StateLogSink


DEFAULT_EVENTS_OUT = "artifacts/events.jsonl"
DEFAULT_METRICS_OUT = "artifacts/metrics.json"

WORKERS_PROMPT = ("Enter initial number of workers: ", "Number of workers must be at least 1. Try again: ")
TICKS_PROMPT = ("Enter number of ticks to run: ", "Running ticks must be at least 1. Try again: ")


def ask_positive_int(prompt: str, retry_prompt: str) -> int:
    """Keep asking until the answer parses as an integer >= 1."""
    answer = input(prompt)
    while True:
        try:
            value = int(answer.strip())
        except ValueError:
            value = 0
        if value >= 1:
            return value
        answer = input(retry_prompt)


def _flag_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides = {"initial_workers": args.workers, "running_ticks": args.ticks, "seed": args.seed}
    return {key: value for key, value in overrides.items() if value is not None}


def _prompt_for_counts(sim: dict[str, Any]) -> None:
    """Ask only for the counts the merged config lacks or sets below 1."""
    for key, prompts in (("initial_workers", WORKERS_PROMPT), ("running_ticks", TICKS_PROMPT)):
        value = sim.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            sim[key] = ask_positive_int(*prompts)


def resolve_spec(args: argparse.Namespace) -> ModelSpec:
    """Build the run spec from ``--config`` and/or the command-line overrides."""
    loader = ConfigLoader()
    if not args.config:
        sim = _flag_overrides(args)
        if args.interactive:
            _prompt_for_counts(sim)
        if "initial_workers" not in sim or "running_ticks" not in sim:
            raise ConfigError("--workers and --ticks are required when no --config is given")
        return loader.load_data(build_default_payload(sim["initial_workers"], sim["running_ticks"], seed=args.seed))

    payload = copy.deepcopy(loader.normalize(loader.read(args.config)))
    sim = payload.setdefault("sim", {})
    if not isinstance(sim, dict):
        raise ConfigError("invalid config structure: sim must be object")
    sim.update(_flag_overrides(args))
    if args.interactive:
        _prompt_for_counts(sim)
    return loader.load_data(payload)


def _build_sinks(args: argparse.Namespace) -> list[ISnapshotSink]:
    sinks: list[ISnapshotSink] = []
    if not args.quiet:
        sinks.append(ConsoleSink(every=args.console_every))
    if args.log_file:
        sinks.append(StateLogSink(args.log_file))
    return sinks


def _drive(engine: DispatchEngine, spec: ModelSpec, args: argparse.Namespace) -> None:
    if not args.step:
        engine.run(until=args.until)
        return
    horizon = spec.sim.running_ticks if args.until is None else min(args.until, spec.sim.running_ticks)
    with engine:
        while engine.now < horizon and not engine.finished:
            engine.step()


def cmd_validate(args: argparse.Namespace) -> int:
    try:
        spec = ConfigLoader().load(args.config)
        # plugin names resolve only at build time
        DispatchEngine().build(spec)
    except ConfigError as exc:
        print(f"[ERROR] {args.config}: {exc}")
        return 1
    print(f"[OK] {args.config} is a valid config")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    if args.until is not None and args.until < 0:
        print("[ERROR] --until must be >= 0")
        return 1
    if args.console_every < 1:
        print("[ERROR] --console-every must be >= 1")
        return 1

    try:
        spec = resolve_spec(args)
        engine = DispatchEngine(sinks=_build_sinks(args))
        engine.build(spec)
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        return 1
    except EOFError:
        print("[ERROR] input ended before a valid value was entered")
        return 1

    _drive(engine, spec, args)

    events = [event.model_dump(mode="json") for event in engine.events]
    metrics_path = write_json(args.metrics_out or DEFAULT_METRICS_OUT, engine.metric_report())
    write_jsonl(args.events_out or DEFAULT_EVENTS_OUT, events)
    if args.events_csv_out:
        write_events_csv(args.events_csv_out, events)
    if args.audit_out:
        audit = build_audit_report(events, cooldown_period=spec.scaling.cooldown_period)
        write_json(args.audit_out, audit)
        if audit["status"] != "pass":
            print(f"[ERROR] audit found {audit['issue_count']} issue(s), report={args.audit_out}")
            return 2

    counters = engine.counters
    print(
        f"[OK] simulation completed, ticks={engine.now}, workers={engine.worker_count}, "
        f"completed={counters.total_completed}, rejected={counters.total_rejected}, "
        f"metrics={metrics_path}"
    )
    return 0


def cmd_batch_run(args: argparse.Namespace) -> int:
    try:
        summary = ExperimentRunner().run_batch(
            args.batch_config,
            output_dir=args.output_dir,
            summary_csv=args.summary_csv,
            summary_json=args.summary_json,
        )
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        return 1

    print(
        f"[OK] batch completed, {summary.succeeded_runs}/{summary.total_runs} runs ok, "
        f"csv={summary.summary_csv}, json={summary.summary_json}"
    )
    if args.strict_fail_on_error and summary.failed_runs:
        print(f"[ERROR] {summary.failed_runs} batch run(s) failed")
        return 2
    return 0


def cmd_compare(args: argparse.Namespace) -> int:
    try:
        left = read_json_object(args.left_metrics)
        right = read_json_object(args.right_metrics)
    except ConfigError as exc:
        print(f"[ERROR] {exc}")
        return 1

    report = build_compare_report(left, right, left_label=args.left_label, right_label=args.right_label)
    if args.out_json:
        write_json(args.out_json, report)
    if args.out_csv:
        write_rows_csv(args.out_csv, compare_report_to_rows(report))
    print(f"[OK] compared {args.left_label} vs {args.right_label}, json={args.out_json or '-'}, csv={args.out_csv or '-'}")
    return 0


def _add_run_arguments(run: argparse.ArgumentParser) -> None:
    setup = run.add_argument_group("setup")
    setup.add_argument("-c", "--config", help="YAML/JSON config; --workers/--ticks/--seed override it")
    setup.add_argument("--workers", type=int, help="initial worker count")
    setup.add_argument("--ticks", type=int, help="total ticks to simulate")
    setup.add_argument("--seed", type=int, help="seed for the simulation random source")
    setup.add_argument("--interactive", action="store_true", help="prompt for worker/tick counts left missing or below 1 by config and flags")

    control = run.add_argument_group("control")
    control.add_argument("--until", type=int, help="stop once this tick completes")
    control.add_argument("--step", action="store_true", help="advance tick by tick instead of a single run call")

    output = run.add_argument_group("output")
    output.add_argument("--log-file", help="per-tick state log (CSV rows + summary)")
    output.add_argument("--console-every", type=int, default=50, help="print a status line every N ticks")
    output.add_argument("--quiet", action="store_true", help="no console status lines")
    output.add_argument("--events-out", help=f"event JSONL path (default {DEFAULT_EVENTS_OUT})")
    output.add_argument("--events-csv-out", help="event CSV path")
    output.add_argument("--metrics-out", help=f"metrics JSON path (default {DEFAULT_METRICS_OUT})")
    output.add_argument("--audit-out", help="audit report JSON path; exit code 2 when the audit fails")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dispatch-sim", description="Auto-scaling dispatcher simulation")
    parser.add_argument("--log-level", default="WARNING", help="diagnostic log level")
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="check a config file")
    validate.add_argument("-c", "--config", required=True, help="YAML/JSON config")
    validate.set_defaults(func=cmd_validate)

    run = commands.add_parser("run", help="run one simulation")
    _add_run_arguments(run)
    run.set_defaults(func=cmd_run)

    batch = commands.add_parser("batch-run", help="run a factor matrix of simulations")
    batch.add_argument("-b", "--batch-config", required=True, help="batch YAML/JSON")
    batch.add_argument("--output-dir", help="directory for per-run artifacts")
    batch.add_argument("--summary-csv", help="summary CSV path")
    batch.add_argument("--summary-json", help="summary JSON path")
    batch.add_argument("--strict-fail-on-error", action="store_true", help="exit 2 if any run failed")
    batch.set_defaults(func=cmd_batch_run)

    compare = commands.add_parser("compare", help="diff two metrics files")
    compare.add_argument("--left-metrics", required=True)
    compare.add_argument("--right-metrics", required=True)
    compare.add_argument("--left-label", default="left")
    compare.add_argument("--right-label", default="right")
    compare.add_argument("--out-json", help="report JSON path")
    compare.add_argument("--out-csv", help="report rows CSV path")
    compare.set_defaults(func=cmd_compare)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        setup_logging(args.log_level)
    except ValueError as exc:
        print(f"[ERROR] {exc}")
        return 1
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
