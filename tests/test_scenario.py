"""
tests/test_scenario.py

Scenario loading, harness modes and replay.

Run:
    pytest tests/test_scenario.py -v --tb=short
"""

import textwrap
import warnings

import pytest

from feeledger import ScenarioError
from feeledger.core.canonical import balances_to_json, canonicalize, state_digest
from feeledger.core.modes import (
    HarnessMode,
    init_lenient_mode,
    init_mode,
    init_mode_from_env,
    init_strict_mode,
)
from feeledger.runtime import Scenario, ScenarioExecutor, load_scenario
from feeledger.runtime.scenario import Op, Outcome


BASIC = """
name: basic transfer
genesis:
  alice: 100
steps:
  - transfer: {from: alice, to: bob, amount: 30}
expect:
  alice: 60
  bob: 30
"""


def write(tmp_path, text, name="scenario.yaml"):
    path = tmp_path / name
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


@pytest.fixture
def lenient():
    return ScenarioExecutor(init_lenient_mode())


@pytest.fixture
def strict():
    return ScenarioExecutor(init_strict_mode())


# ─────────────────────────────────────────────────────────────
# Loading
# ─────────────────────────────────────────────────────────────

class TestLoadScenario:

    def test_load_basic(self, tmp_path):
        scenario = load_scenario(write(tmp_path, BASIC))

        assert scenario.name == "basic transfer"
        assert scenario.genesis == {"alice": 100}
        assert len(scenario.steps) == 1
        step = scenario.steps[0]
        assert step.op == Op.TRANSFER
        assert step.args == {"from": "alice", "to": "bob", "amount": 30}
        assert step.expect is None
        assert step.describe() == "transfer alice -> bob 30"
        assert scenario.expect == {"alice": 60, "bob": 30}

    def test_name_defaults_to_file_stem(self, tmp_path):
        path = write(tmp_path, "steps: []\n", name="genesis_only.yaml")
        assert load_scenario(path).name == "genesis_only"

    def test_empty_file_is_empty_scenario(self, tmp_path):
        scenario = load_scenario(write(tmp_path, ""))
        assert scenario.steps == []
        assert scenario.genesis == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_scenario(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ScenarioError, match="Invalid YAML"):
            load_scenario(write(tmp_path, "steps: [unclosed\n"))

    @pytest.mark.parametrize("data,match", [
        (["not", "a", "mapping"], "must be a mapping"),
        ({"bogus": 1}, "Unknown scenario keys"),
        ({"steps": {"a": 1}}, "'steps' must be a list"),
        ({"genesis": [1, 2]}, "'genesis' must map"),
        ({"genesis": {"alice": -1}}, "'genesis' balance"),
        ({"expect": {"alice": "ten"}}, "'expect' balance"),
        ({"steps": ["transfer"]}, "Step must be a mapping"),
        ({"steps": [{"mint": {"amount": 1}}]}, "exactly one of"),
        ({"steps": [{"transfer": {}, "set_balance": {}}]}, "exactly one of"),
        ({"steps": [{"transfer": [1, 2]}]}, "arguments must be a mapping"),
        ({"steps": [{"transfer": {"from": "a", "amount": 1}}]}, "missing fields"),
        ({"steps": [{"transfer": {"from": "a", "to": "b", "amount": 1.5}}]}, "Amount must be an integer"),
        ({"steps": [{"set_balance": {"account": "a", "amount": True}}]}, "Amount must be an integer"),
        ({"steps": [{"set_balance": {"account": "a", "amount": 1}, "expect": "maybe"}]}, "Unknown step expectation"),
    ])
    def test_malformed(self, data, match):
        with pytest.raises(ScenarioError, match=match):
            Scenario.from_dict(data)

    def test_error_details_carry_step_index(self):
        data = {"steps": [
            {"set_balance": {"account": "a", "amount": 1}},
            {"transfer": {"from": "a"}},
        ]}
        with pytest.raises(ScenarioError) as exc_info:
            Scenario.from_dict(data)
        assert exc_info.value.details["step"] == 1

    def test_negative_step_amount_is_left_to_ledger(self):
        scenario = Scenario.from_dict({"steps": [
            {"transfer": {"from": "a", "to": "b", "amount": -5}, "expect": "invalid_amount"},
        ]})
        assert scenario.steps[0].args["amount"] == -5

    @pytest.mark.parametrize("section", ["genesis", "expect"])
    def test_colliding_account_keys(self, section):
        with pytest.raises(ScenarioError, match="more than once") as exc_info:
            Scenario.from_dict({section: {1: 5, "1": 6}})
        assert exc_info.value.details["account"] == "1"

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "latin.yaml"
        path.write_bytes(b"name: \xff\xfe bad\n")
        with pytest.raises(ScenarioError, match="not valid UTF-8"):
            load_scenario(path)

    def test_accounts_are_strings(self):
        scenario = Scenario.from_dict({
            "genesis": {1: 50},
            "steps": [{"transfer": {"from": 1, "to": 2, "amount": 5}}],
        })
        assert scenario.genesis == {"1": 50}
        assert scenario.steps[0].args["from"] == "1"


# ─────────────────────────────────────────────────────────────
# Modes
# ─────────────────────────────────────────────────────────────

class TestModes:

    def test_lenient_warns(self):
        manager = init_lenient_mode()
        with pytest.warns(UserWarning, match="rejected"):
            manager.on_rejection("step rejected")
        manager.on_expectation("ignored")

    def test_strict_raises(self):
        manager = init_strict_mode()
        with pytest.raises(ScenarioError):
            manager.on_rejection("step rejected", {"step": 0})
        with pytest.raises(ScenarioError):
            manager.on_expectation("expectation unmet")

    def test_strict_raises_without_warning(self):
        manager = init_strict_mode()
        assert manager.config.warn_on_rejection is False
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            with pytest.raises(ScenarioError):
                manager.on_rejection("step rejected")

    @pytest.mark.parametrize("name,mode", [
        ("strict", HarnessMode.STRICT),
        ("STRICT", HarnessMode.STRICT),
        ("lenient", HarnessMode.LENIENT),
        ("whatever", HarnessMode.LENIENT),
        ("", HarnessMode.LENIENT),
    ])
    def test_init_mode(self, name, mode):
        assert init_mode(name).mode == mode

    def test_mode_from_env(self, monkeypatch):
        monkeypatch.setenv("FEELEDGER_MODE", "strict")
        assert init_mode_from_env().mode == HarnessMode.STRICT
        monkeypatch.delenv("FEELEDGER_MODE")
        assert init_mode_from_env().mode == HarnessMode.LENIENT


# ─────────────────────────────────────────────────────────────
# Replay
# ─────────────────────────────────────────────────────────────

class TestExecutor:

    def test_basic_passes(self, tmp_path, lenient):
        result = lenient.run(load_scenario(write(tmp_path, BASIC)))

        assert result.passed
        assert result.mode == "lenient"
        assert result.balances == {"alice": 60, "bob": 30}
        assert result.stats["fees_burned"] == 10
        assert result.mismatches == []
        assert result.steps[0].outcome == Outcome.OK

    def test_insufficient_funds_expected(self, strict):
        scenario = Scenario.from_dict({
            "genesis": {"alice": 20},
            "steps": [
                {"transfer": {"from": "alice", "to": "bob", "amount": 15}, "expect": "insufficient_funds"},
            ],
            "expect": {"alice": 20, "bob": 0},
        })
        result = strict.run(scenario)

        assert result.passed
        assert result.steps[0].rejected
        assert result.steps[0].matched
        assert result.balances == {"alice": 20}

    def test_exact_amount_with_fee(self, lenient):
        scenario = Scenario.from_dict({
            "genesis": {"alice": 40},
            "steps": [{"transfer": {"from": "alice", "to": "bob", "amount": 30}, "expect": "ok"}],
            "expect": {"alice": 0, "bob": 30},
        })
        assert lenient.run(scenario).passed

    def test_lenient_records_unexpected_rejection(self, lenient):
        scenario = Scenario.from_dict({
            "genesis": {"alice": 5},
            "steps": [
                {"transfer": {"from": "alice", "to": "bob", "amount": 1}},
                {"set_balance": {"account": "bob", "amount": 50}},
            ],
        })
        with pytest.warns(UserWarning, match="Step 0 rejected"):
            result = lenient.run(scenario)

        assert result.passed
        assert len(result.steps) == 2
        assert [s.outcome for s in result.rejected] == [Outcome.INSUFFICIENT_FUNDS]
        assert result.balances == {"alice": 5, "bob": 50}

    def test_strict_stops_at_unexpected_rejection(self, strict):
        scenario = Scenario.from_dict({
            "genesis": {"alice": 5},
            "steps": [
                {"transfer": {"from": "alice", "to": "bob", "amount": 1}},
                {"set_balance": {"account": "bob", "amount": 50}},
            ],
            "expect": {"bob": 50},
        })
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = strict.run(scenario)

        assert not result.passed
        assert result.stopped_at == 0
        assert "rejected" in result.stop_reason
        assert len(result.steps) == 1
        assert result.balances == {"alice": 5}
        # final expectations are not evaluated after a stop
        assert result.mismatches == []

    def test_step_expectation_mismatch(self, lenient, strict):
        scenario = Scenario.from_dict({
            "genesis": {"alice": 100},
            "steps": [
                {"transfer": {"from": "alice", "to": "bob", "amount": 10}, "expect": "insufficient_funds"},
            ],
        })
        result = lenient.run(scenario)
        assert not result.passed
        assert result.unmatched[0].index == 0

        result = strict.run(scenario)
        assert result.stopped_at == 0
        assert "expected insufficient_funds, got ok" in result.stop_reason

    def test_balance_mismatch(self, lenient):
        scenario = Scenario.from_dict({
            "genesis": {"alice": 100},
            "steps": [{"transfer": {"from": "alice", "to": "bob", "amount": 30}}],
            "expect": {"alice": 70, "bob": 30},
        })
        result = lenient.run(scenario)

        assert not result.passed
        assert len(result.mismatches) == 1
        mismatch = result.mismatches[0]
        assert (mismatch.account, mismatch.expected, mismatch.actual) == ("alice", 70, 60)

    def test_invalid_and_overflow_outcomes(self, lenient):
        big = 2 ** 128 - 1
        scenario = Scenario.from_dict({
            "genesis": {"alice": big},
            "steps": [
                {"transfer": {"from": "alice", "to": "bob", "amount": -1}, "expect": "invalid_amount"},
                {"transfer": {"from": "alice", "to": "bob", "amount": big}, "expect": "overflow"},
                {"set_balance": {"account": "carol", "amount": big + 1}, "expect": "invalid_amount"},
            ],
            "expect": {"alice": big},
        })
        result = lenient.run(scenario)

        assert result.passed
        assert [s.outcome for s in result.steps] == [
            Outcome.INVALID_AMOUNT, Outcome.OVERFLOW, Outcome.INVALID_AMOUNT,
        ]

    def test_self_transfer_scenario(self, lenient):
        scenario = Scenario.from_dict({
            "genesis": {"alice": 100},
            "steps": [{"transfer": {"from": "alice", "to": "alice", "amount": 50}}],
            "expect": {"alice": 90},
        })
        assert lenient.run(scenario).passed

    def test_each_run_uses_fresh_ledger(self, tmp_path, lenient):
        scenario = load_scenario(write(tmp_path, BASIC))
        first = lenient.run(scenario)
        second = lenient.run(scenario)
        assert first.balances == second.balances
        assert second.passed

    def test_step_outcome_to_dict(self, lenient):
        scenario = Scenario.from_dict({
            "steps": [{"set_balance": {"account": "alice", "amount": 1}}],
        })
        outcome = lenient.run(scenario).steps[0].to_dict()
        assert outcome == {
            "index": 0,
            "op": "set_balance",
            "summary": "set_balance alice = 1",
            "outcome": "ok",
            "expected": None,
            "matched": True,
            "error": None,
        }


# ─────────────────────────────────────────────────────────────
# State digest
# ─────────────────────────────────────────────────────────────

class TestStateDigest:

    def test_digest_is_order_independent(self):
        a = state_digest({"alice": 1, "bob": 2})
        b = state_digest({"bob": 2, "alice": 1})
        assert a == b
        assert len(a) == 64

    def test_digest_changes_with_balance(self):
        assert state_digest({"alice": 1}) != state_digest({"alice": 2})

    def test_balances_encoded_as_strings(self):
        big = 2 ** 128 - 1
        assert balances_to_json({"alice": big}) == {"alice": str(big)}
        assert canonicalize(balances_to_json({"b": 2, "a": 1})) == b'{"a":"1","b":"2"}'

    def test_result_digest_matches_balances(self, tmp_path, lenient):
        result = lenient.run(load_scenario(write(tmp_path, BASIC)))
        assert result.state_digest == state_digest({"alice": 60, "bob": 30})
