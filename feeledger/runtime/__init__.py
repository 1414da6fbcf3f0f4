"""
FeeLedger Runtime - Scenario harness.

Embeds a Ledger the way a hosting system would: seeds genesis balances,
replays operations and checks the resulting state.
"""

from feeledger.runtime.scenario import Scenario, Step, load_scenario
from feeledger.runtime.executor import ScenarioExecutor, ScenarioResult, StepOutcome

__all__ = [
    "Scenario",
    "Step",
    "load_scenario",
    "ScenarioExecutor",
    "ScenarioResult",
    "StepOutcome",
]
