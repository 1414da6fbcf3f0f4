"""
feeledger/cli/run.py

feeledger run — Scenario Replay CLI
===================================

Usage:
    feeledger run <scenario.yaml>                  Human output (default)
    feeledger run <scenario.yaml> --format json    Machine-readable JSON
    feeledger run <scenario.yaml> --mode strict    Stop at first unexpected rejection
    feeledger run <scenario.yaml> --quiet          Exit code only
    feeledger run <scenario.yaml> --no-color       Disable ANSI

--mode falls back to the FEELEDGER_MODE environment variable, then lenient.

Exit codes:
    0  Scenario passed (all expectations met)
    1  Expectation mismatch, or replay stopped in strict mode
    2  Error  (file missing or unreadable, malformed YAML, invalid scenario)
"""

import json
import sys
import warnings
from pathlib import Path
from typing import Optional

import click

from feeledger.core.exceptions import ScenarioError
from feeledger.core.models import TRANSACTION_FEE
from feeledger.core.modes import init_mode, init_mode_from_env
from feeledger.runtime.executor import ScenarioExecutor, ScenarioResult
from feeledger.runtime.scenario import load_scenario


# ── ANSI color ────────────────────────────────────────────────────────────────

class _Color:
    """
    Minimal ANSI color wrapper.
    Auto-disables when not a TTY or --no-color is passed.
    """
    _on: bool = True

    @classmethod
    def configure(cls, enabled: bool) -> None:
        cls._on = enabled and sys.stdout.isatty()

    @classmethod
    def green(cls, s: str) -> str:
        return f"\033[32m{s}\033[0m" if cls._on else s

    @classmethod
    def red(cls, s: str) -> str:
        return f"\033[31m{s}\033[0m" if cls._on else s

    @classmethod
    def yellow(cls, s: str) -> str:
        return f"\033[33m{s}\033[0m" if cls._on else s

    @classmethod
    def bold(cls, s: str) -> str:
        return f"\033[1m{s}\033[0m" if cls._on else s

    @classmethod
    def dim(cls, s: str) -> str:
        return f"\033[2m{s}\033[0m" if cls._on else s


def _row_ok(label: str, value: str) -> str:
    label_col = _Color.dim(f"{label:<16}")
    return f"  {label_col}  {_Color.green('✅')}  {value}"

def _row_fail(label: str, value: str) -> str:
    label_col = _Color.dim(f"{label:<16}")
    return f"  {label_col}  {_Color.red('❌')}  {value}"

def _row_info(label: str, value: str) -> str:
    label_col = _Color.dim(f"{label:<16}")
    return f"  {label_col}     {_Color.dim(value)}"


# ── CLI command ───────────────────────────────────────────────────────────────

@click.command(name="run")
@click.argument("scenario", type=click.Path(exists=False))
@click.option(
    "--mode",
    type=click.Choice(["lenient", "strict"], case_sensitive=False),
    default=None,
    help="Harness mode. Defaults to $FEELEDGER_MODE, then lenient.",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["human", "json"], case_sensitive=False),
    default="human",
    show_default=True,
    help="Output format: human (default) or json (CI/automation).",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output. Use exit code only (0=passed, 1=failed, 2=error).",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable ANSI color output.",
)
def run_command(
    scenario: str,
    mode:     Optional[str],
    fmt:      str,
    quiet:    bool,
    no_color: bool,
) -> None:
    """
    Replay a scenario against a fresh ledger and check expectations.

    SCENARIO is the path to a YAML scenario file.

    \b
    Examples:
      feeledger run genesis.yaml
      feeledger run genesis.yaml --mode strict --format json
    """
    _Color.configure(not no_color)

    scenario_path = Path(scenario)

    # ── Load ──────────────────────────────────────────────────
    if not scenario_path.exists():
        _emit_error(f"Scenario not found: {scenario}", fmt, quiet)
        sys.exit(2)
    if not scenario_path.is_file():
        _emit_error(f"Scenario is not a file: {scenario}", fmt, quiet)
        sys.exit(2)

    try:
        loaded = load_scenario(scenario_path)
    except ScenarioError as e:
        _emit_error(str(e), fmt, quiet)
        sys.exit(2)
    except OSError as e:
        _emit_error(f"Cannot read scenario: {e}", fmt, quiet)
        sys.exit(2)

    # ── Replay ────────────────────────────────────────────────
    mode_manager = init_mode(mode) if mode else init_mode_from_env()
    executor = ScenarioExecutor(mode_manager)

    # rejections are reported in the output below
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        result = executor.run(loaded)

    if quiet:
        sys.exit(0 if result.passed else 1)

    if fmt == "json":
        _output_json(result, scenario_path)
    else:
        _output_human(result, scenario_path)

    sys.exit(0 if result.passed else 1)


# ── Human output ──────────────────────────────────────────────────────────────

def _output_human(result: ScenarioResult, scenario_path: Path) -> None:
    BAR_HEAVY = "═" * 68
    BAR_LIGHT = "─" * 68

    click.echo()
    click.echo(_Color.bold(f"  {BAR_HEAVY}"))
    click.echo(_Color.bold(  "  FeeLedger  ·  Scenario Replay"))
    click.echo(_Color.bold(f"  {BAR_HEAVY}"))
    click.echo()

    click.echo(_row_info("Scenario", f"{result.name}  ({scenario_path})"))
    click.echo(_row_info("Mode",     result.mode))
    click.echo(_row_info("Fee",      f"{TRANSACTION_FEE} per transfer (burned)"))
    click.echo()

    # ── Steps ─────────────────────────────────────────────────
    for step in result.steps:
        label = f"step {step.index}"
        if step.rejected and step.matched:
            click.echo(_row_ok(label, f"{step.summary}  " + _Color.dim(f"[{step.outcome}, expected]")))
        elif step.rejected:
            click.echo(_row_fail(label, f"{step.summary}  " + _Color.yellow(f"[{step.outcome}]")))
        elif step.matched:
            click.echo(_row_ok(label, step.summary))
        else:
            click.echo(_row_fail(label, f"{step.summary}  " + _Color.red(f"[expected {step.expected}]")))

    if result.stopped_at is not None:
        click.echo()
        click.echo(_row_fail("Stopped", _Color.red(result.stop_reason)))

    click.echo()

    # ── Balances ──────────────────────────────────────────────
    click.echo(f"  {BAR_LIGHT}")
    for account, amount in sorted(result.balances.items()):
        click.echo(_row_info(account, f"{amount:,}"))
    if not result.balances:
        click.echo(_row_info("Balances", "—"))
    click.echo(f"  {BAR_LIGHT}")
    click.echo(_row_info("Transfers",   f"{result.stats.get('transfers', 0):,}"))
    click.echo(_row_info("Fees burned", f"{result.stats.get('fees_burned', 0):,}"))
    click.echo(_row_info("State digest", result.state_digest or "—"))
    click.echo()

    for m in result.mismatches:
        click.echo(_row_fail(m.account, f"expected {m.expected:,}, got {_Color.red(f'{m.actual:,}')}"))
    if result.mismatches:
        click.echo()

    # ── Final verdict ─────────────────────────────────────────
    click.echo(f"  {BAR_LIGHT}")
    if result.passed:
        click.echo(_Color.green(_Color.bold(
            f"  ✅  PASSED  ·  {len(result.steps)} step(s)  ·  {len(result.rejected)} rejected"
        )))
    else:
        failures = len(result.mismatches) + len(result.unmatched)
        if result.stopped_at is not None and not result.unmatched:
            failures += 1
        click.echo(_Color.red(_Color.bold(
            f"  ❌  FAILED  ·  {failures} failure(s)"
        )))
    click.echo(f"  {BAR_LIGHT}")
    click.echo()


# ── JSON output ───────────────────────────────────────────────────────────────

def _output_json(result: ScenarioResult, scenario_path: Path) -> None:
    out = {
        "feeledger_run": {
            "scenario":        str(scenario_path),
            "name":            result.name,
            "mode":            result.mode,
            "passed":          result.passed,
            "transaction_fee": TRANSACTION_FEE,
            "steps":           [s.to_dict() for s in result.steps],
            "stopped_at":      result.stopped_at,
            "stop_reason":     result.stop_reason,
            "balances":        dict(sorted(result.balances.items())),
            "mismatches": [
                {
                    "account":  m.account,
                    "expected": m.expected,
                    "actual":   m.actual,
                }
                for m in result.mismatches
            ],
            "stats":           result.stats,
            "state_digest":    result.state_digest,
        }
    }
    click.echo(json.dumps(out, indent=2))


# ── Error output ──────────────────────────────────────────────────────────────

def _emit_error(msg: str, fmt: str, quiet: bool) -> None:
    """Emit error in the correct format. Never raises."""
    if quiet:
        return
    if fmt == "json":
        click.echo(json.dumps({
            "feeledger_run": {
                "error":  msg,
                "passed": False,
            }
        }))
    else:
        click.echo(
            _Color.red(f"\n  ❌  ERROR: {msg}\n"),
            err=True,
        )
