"""
FeeLedger: Canonical JSON Encoding — RFC 8785 (JCS)

Used by the scenario harness to commit to a final ledger state.
The ledger core never serializes anything.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib
from typing import Hashable, Mapping

try:
    import jcs as _jcs
except ImportError as exc:
    raise ImportError(
        "FeeLedger requires the 'jcs' package for RFC 8785 compliance.\n"
        "Install with: pip install jcs\n"
        f"Original error: {exc}"
    ) from exc


def canonicalize(obj: dict) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    Output is deterministic regardless of key insertion order.
    All values must be JSON-primitive (str, int, float, bool, None, list, dict).
    """
    return _jcs.canonicalize(obj)


def canonical_hash(obj: dict) -> str:
    """
    SHA-256 of the RFC 8785 canonical form.

    Returns:
        Lowercase hex-encoded SHA-256 digest (64 characters).
    """
    return hashlib.sha256(canonicalize(obj)).hexdigest()


def balances_to_json(balances: Mapping[Hashable, int]) -> dict:
    """
    JSON-safe view of a balance mapping.

    Balances become decimal strings: JCS serializes numbers as IEEE
    doubles, which cannot hold the full 128-bit range.
    """
    return {str(account): str(amount) for account, amount in balances.items()}


def state_digest(balances: Mapping[Hashable, int]) -> str:
    """hex(SHA-256(JCS({account: "balance"})))"""
    return canonical_hash(balances_to_json(balances))
