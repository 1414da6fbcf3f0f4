"""
Scenario executor: replays a Scenario against a fresh Ledger.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from feeledger.core.canonical import state_digest
from feeledger.core.exceptions import LedgerError, ScenarioError
from feeledger.core.modes import ModeManager, init_mode_from_env
from feeledger.ledger import Ledger
from feeledger.runtime.scenario import Op, Outcome, Scenario, Step


@dataclass
class StepOutcome:
    """Result of applying one step."""
    index:    int
    op:       str
    summary:  str
    outcome:  str
    expected: Optional[str] = None
    error:    Optional[str] = None

    @property
    def rejected(self) -> bool:
        return self.outcome != Outcome.OK

    @property
    def matched(self) -> bool:
        return self.expected is None or self.expected == self.outcome

    def to_dict(self) -> dict:
        return {
            "index":    self.index,
            "op":       self.op,
            "summary":  self.summary,
            "outcome":  self.outcome,
            "expected": self.expected,
            "matched":  self.matched,
            "error":    self.error,
        }


@dataclass
class BalanceMismatch:
    account:  str
    expected: int
    actual:   int


@dataclass
class ScenarioResult:
    name:         str
    mode:         str
    steps:        List[StepOutcome] = field(default_factory=list)
    balances:     Dict[str, int] = field(default_factory=dict)
    mismatches:   List[BalanceMismatch] = field(default_factory=list)
    stats:        dict = field(default_factory=dict)
    state_digest: Optional[str] = None
    stopped_at:   Optional[int] = None
    stop_reason:  Optional[str] = None

    @property
    def rejected(self) -> List[StepOutcome]:
        return [s for s in self.steps if s.rejected]

    @property
    def unmatched(self) -> List[StepOutcome]:
        return [s for s in self.steps if not s.matched]

    @property
    def passed(self) -> bool:
        return self.stopped_at is None and not self.mismatches and not self.unmatched


class ScenarioExecutor:
    """
    Applies scenario steps to a Ledger owned by this run.

    Each run() starts from an empty ledger seeded with the scenario genesis.
    What happens on a rejected step is decided by the ModeManager.
    """

    def __init__(self, mode_manager: Optional[ModeManager] = None):
        self.mode_manager = mode_manager or init_mode_from_env()

    def run(self, scenario: Scenario) -> ScenarioResult:
        """
        Replay scenario and collect per-step outcomes.

        In strict mode replay stops at the first unexpected rejection or
        unmet expectation; the result records where and why.
        """
        ledger: Ledger[str] = Ledger.create()
        for account, amount in scenario.genesis.items():
            ledger.set_balance(account, amount)

        result = ScenarioResult(
            name=scenario.name,
            mode=self.mode_manager.mode.value,
        )

        for step in scenario.steps:
            outcome = self._apply(ledger, step)
            result.steps.append(outcome)
            try:
                self._check(outcome)
            except ScenarioError as e:
                result.stopped_at = step.index
                result.stop_reason = str(e)
                break

        result.balances = ledger.snapshot()
        result.stats = ledger.get_stats()
        result.state_digest = state_digest(result.balances)

        if result.stopped_at is None:
            for account, expected in sorted(scenario.expect.items()):
                actual = ledger.balance(account)
                if actual != expected:
                    result.mismatches.append(BalanceMismatch(account, expected, actual))

        return result

    def _apply(self, ledger: Ledger, step: Step) -> StepOutcome:
        outcome = StepOutcome(
            index=step.index,
            op=step.op,
            summary=step.describe(),
            outcome=Outcome.OK,
            expected=step.expect,
        )
        try:
            if step.op == Op.TRANSFER:
                ledger.transfer(step.args["from"], step.args["to"], step.args["amount"])
            else:
                ledger.set_balance(step.args["account"], step.args["amount"])
        except LedgerError as e:
            outcome.outcome = e.code
            outcome.error = str(e)
        return outcome

    def _check(self, outcome: StepOutcome) -> None:
        details = {"step": outcome.index, "op": outcome.summary}
        if outcome.rejected and outcome.expected is None:
            self.mode_manager.on_rejection(
                f"Step {outcome.index} rejected: {outcome.error}", details
            )
        elif not outcome.matched:
            self.mode_manager.on_expectation(
                f"Step {outcome.index} expected {outcome.expected}, got {outcome.outcome}",
                details,
            )
