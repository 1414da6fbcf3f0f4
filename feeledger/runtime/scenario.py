"""
Scenario files for the FeeLedger harness.

A scenario is a YAML document:

    name: basic transfer
    genesis:
      alice: 100
    steps:
      - transfer: {from: alice, to: bob, amount: 30}
      - set_balance: {account: carol, amount: 5}
      - transfer: {from: carol, to: bob, amount: 1}
        expect: insufficient_funds
    expect:
      alice: 60
      bob: 30

genesis and the final expect block map account -> balance.
A step carries exactly one operation and an optional outcome expectation.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from feeledger.core.exceptions import ScenarioError
from feeledger.core.models import is_balance


class Op:
    TRANSFER    = "transfer"
    SET_BALANCE = "set_balance"


class Outcome:
    OK                 = "ok"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    OVERFLOW           = "overflow"
    INVALID_AMOUNT     = "invalid_amount"


_VALID_OUTCOMES = {
    Outcome.OK,
    Outcome.INSUFFICIENT_FUNDS,
    Outcome.OVERFLOW,
    Outcome.INVALID_AMOUNT,
}

_OP_FIELDS = {
    Op.TRANSFER:    ("from", "to", "amount"),
    Op.SET_BALANCE: ("account", "amount"),
}


@dataclass
class Step:
    """A single ledger operation in a scenario"""
    index:  int
    op:     str
    args:   Dict[str, Any]
    expect: Optional[str] = None

    def describe(self) -> str:
        if self.op == Op.TRANSFER:
            return f"transfer {self.args['from']} -> {self.args['to']} {self.args['amount']}"
        return f"set_balance {self.args['account']} = {self.args['amount']}"


@dataclass
class Scenario:
    name:    str
    genesis: Dict[str, int] = field(default_factory=dict)
    steps:   List[Step] = field(default_factory=list)
    expect:  Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, default_name: str = "scenario") -> "Scenario":
        """Build a scenario from parsed YAML. Raises ScenarioError on bad structure."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ScenarioError("Scenario must be a mapping", {"got": type(data).__name__})

        unknown = set(data) - {"name", "genesis", "steps", "expect"}
        if unknown:
            raise ScenarioError("Unknown scenario keys", {"keys": sorted(unknown)})

        steps_raw = data.get("steps") or []
        if not isinstance(steps_raw, list):
            raise ScenarioError("'steps' must be a list")

        return cls(
            name=str(data.get("name") or default_name),
            genesis=_parse_balances(data.get("genesis"), "genesis"),
            steps=[_parse_step(i, raw) for i, raw in enumerate(steps_raw)],
            expect=_parse_balances(data.get("expect"), "expect"),
        )


def load_scenario(path: Path) -> Scenario:
    """
    Load a scenario from a YAML file.

    Raises:
        FileNotFoundError: path does not exist.
        ScenarioError: file is not UTF-8, YAML is malformed, or it does not describe a scenario.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ScenarioError(f"Invalid YAML: {e}", {"path": str(path)}) from e
        except UnicodeDecodeError as e:
            raise ScenarioError("Scenario is not valid UTF-8", {"path": str(path)}) from e
    return Scenario.from_dict(data, default_name=path.stem)


# ─────────────────────────────────────────────────────────────
# Parsing helpers
# ─────────────────────────────────────────────────────────────

def _parse_balances(raw: Any, section: str) -> Dict[str, int]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ScenarioError(f"'{section}' must map account to balance")
    balances = {}
    for account, amount in raw.items():
        if not is_balance(amount):
            raise ScenarioError(
                f"'{section}' balance must be an integer in [0, 2**128 - 1]",
                {"account": account, "amount": repr(amount)},
            )
        key = str(account)
        if key in balances:
            raise ScenarioError(
                f"'{section}' names account '{key}' more than once",
                {"account": key},
            )
        balances[key] = amount
    return balances


def _parse_step(index: int, raw: Any) -> Step:
    if not isinstance(raw, dict):
        raise ScenarioError("Step must be a mapping", {"step": index})

    expect = raw.get("expect")
    if expect is not None and expect not in _VALID_OUTCOMES:
        raise ScenarioError(
            "Unknown step expectation",
            {"step": index, "expect": expect, "valid": sorted(_VALID_OUTCOMES)},
        )

    ops = [k for k in raw if k != "expect"]
    if len(ops) != 1 or ops[0] not in _OP_FIELDS:
        raise ScenarioError(
            "Step must contain exactly one of: transfer, set_balance",
            {"step": index, "keys": ops},
        )
    op = ops[0]

    args = raw[op]
    if not isinstance(args, dict):
        raise ScenarioError(f"'{op}' arguments must be a mapping", {"step": index})

    fields = _OP_FIELDS[op]
    missing = [f for f in fields if f not in args]
    if missing:
        raise ScenarioError(f"'{op}' is missing fields", {"step": index, "missing": missing})

    amount = args["amount"]
    # range is left to the ledger so invalid amounts can be expected
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ScenarioError("Amount must be an integer", {"step": index, "amount": repr(amount)})

    parsed = {f: str(args[f]) for f in fields if f != "amount"}
    parsed["amount"] = amount
    return Step(index=index, op=op, args=parsed, expect=expect)
