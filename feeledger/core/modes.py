"""
FeeLedger Harness: Lenient and Strict Modes.

Lenient Mode: Rejected steps are recorded and warned about. Replay continues.
Strict Mode:  First rejected step or unmet expectation stops the replay.

The mode governs the scenario harness only. Ledger semantics never change.
"""

import os
import warnings
from dataclasses import dataclass
from enum import Enum

from feeledger.core.exceptions import ScenarioError


class HarnessMode(Enum):
    LENIENT = "lenient"
    STRICT  = "strict"


@dataclass
class ModeConfig:
    mode:                 HarnessMode
    warn_on_rejection:    bool
    fail_on_rejection:    bool
    fail_on_expectation:  bool


class ModeManager:
    """
    Decides what happens when the ledger rejects a scenario step.

    Lenient mode: warnings only.
    Strict mode:  ScenarioError on every violation.
    """

    def __init__(self, config: ModeConfig):
        self.config = config

    @property
    def mode(self) -> HarnessMode:
        return self.config.mode

    def on_rejection(self, msg: str, details: dict = None) -> None:
        if self.config.fail_on_rejection:
            raise ScenarioError(msg, details)
        if self.config.warn_on_rejection:
            warnings.warn(msg)

    def on_expectation(self, msg: str, details: dict = None) -> None:
        if self.config.fail_on_expectation:
            raise ScenarioError(msg, details)


# ─────────────────────────────────────────────────────────────
# Factory Functions
# ─────────────────────────────────────────────────────────────

def init_lenient_mode() -> ModeManager:
    return ModeManager(ModeConfig(
        mode=HarnessMode.LENIENT,
        warn_on_rejection=True,
        fail_on_rejection=False,
        fail_on_expectation=False,
    ))


def init_strict_mode() -> ModeManager:
    return ModeManager(ModeConfig(
        mode=HarnessMode.STRICT,
        warn_on_rejection=False,
        fail_on_rejection=True,
        fail_on_expectation=True,
    ))


def init_mode(name: str) -> ModeManager:
    """Mode by name. Anything other than 'strict' is lenient."""
    return init_strict_mode() \
        if (name or "").lower() == HarnessMode.STRICT.value \
        else init_lenient_mode()


def init_mode_from_env() -> ModeManager:
    """Read FEELEDGER_MODE env var. Defaults to lenient."""
    return init_mode(os.environ.get("FEELEDGER_MODE", "lenient"))
