from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .utils import describe_payload, parse_amount, parse_date

# Candidate keys per target field, tried in order; matching is case sensitive.
CANDIDATE_FIELDS: Dict[str, List[str]] = {
    "date": ["date", "Date", "DATE", "voucher_date", "transaction_date", "txn_date"],
    "amount": ["amount", "Amount", "AMOUNT", "value", "total", "debit", "credit"],
    "debit_account": ["debit_account", "dr_account", "from_account", "paid_to", "expense"],
    "credit_account": ["credit_account", "cr_account", "to_account", "received_from", "income"],
    "account": ["account", "Account", "account_name", "ledger"],
    "narration": ["narration", "description", "particulars", "memo", "notes", "remarks"],
}

CONFIDENCE_WEIGHTS = {
    "date": 0.25,
    "amount": 0.25,
    "debit_account": 0.125,
    "credit_account": 0.125,
    "account": 0.1,
    "narration": 0.125,
}

WARN_NO_DATE = "Could not detect date"
WARN_NO_AMOUNT = "Could not detect amount"
WARN_SINGLE_ACCOUNT = "Only one account detected, manual mapping required"


def _text(value: Any) -> Optional[str]:
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class FieldStrategy:
    """How one target field is pulled out of a payload.

    ``present_only`` accepts any key that exists (even with an empty or zero
    value); otherwise the value must be truthy. ``parse`` returning ``None``
    moves on to the next candidate key.
    """

    name: str
    keys: Sequence[str]
    parse: Callable[[Any], Any]
    present_only: bool = False

    def detect(self, payload: Mapping[str, Any]) -> Optional[Any]:
        for key in self.keys:
            if self.present_only:
                if key not in payload:
                    continue
            elif not payload.get(key):
                continue
            parsed = self.parse(payload[key])
            if parsed is not None:
                return parsed
        return None


STRATEGIES: Dict[str, FieldStrategy] = {
    "date": FieldStrategy("date", CANDIDATE_FIELDS["date"], parse_date),
    "amount": FieldStrategy("amount", CANDIDATE_FIELDS["amount"], parse_amount, present_only=True),
    "debit_account": FieldStrategy("debit_account", CANDIDATE_FIELDS["debit_account"], _text),
    "credit_account": FieldStrategy("credit_account", CANDIDATE_FIELDS["credit_account"], _text),
    "account": FieldStrategy("account", CANDIDATE_FIELDS["account"], _text),
    "narration": FieldStrategy("narration", CANDIDATE_FIELDS["narration"], _text),
}


@dataclass
class DetectionResult:
    date: Optional[str] = None
    amount: Optional[float] = None
    debit_account: Optional[str] = None
    credit_account: Optional[str] = None
    narration: Optional[str] = None
    confidence: float = 0.0
    warnings: List[str] = field(default_factory=list)
    matched_fields: List[str] = field(default_factory=list)


class FieldDetector:
    def __init__(self, single_account_side: str = "debit"):
        if single_account_side not in {"debit", "credit"}:
            raise ValueError("single_account_side must be 'debit' or 'credit'")
        self.single_account_side = single_account_side

    def _score(self, result: DetectionResult, name: str) -> None:
        result.confidence += CONFIDENCE_WEIGHTS[name]
        result.matched_fields.append(name)

    def detect(self, payload: Mapping[str, Any]) -> DetectionResult:
        if not isinstance(payload, Mapping):
            raise TypeError(f"Payload must be an object, got {type(payload).__name__}")
        result = DetectionResult()

        result.date = STRATEGIES["date"].detect(payload)
        if result.date:
            self._score(result, "date")
        else:
            result.warnings.append(WARN_NO_DATE)

        result.amount = STRATEGIES["amount"].detect(payload)
        if result.amount is not None:
            self._score(result, "amount")
        if not result.amount:
            result.warnings.append(WARN_NO_AMOUNT)

        result.debit_account = STRATEGIES["debit_account"].detect(payload)
        if result.debit_account:
            self._score(result, "debit_account")
        result.credit_account = STRATEGIES["credit_account"].detect(payload)
        if result.credit_account:
            self._score(result, "credit_account")

        if not result.debit_account and not result.credit_account:
            account = STRATEGIES["account"].detect(payload)
            if account:
                if self.single_account_side == "credit":
                    result.credit_account = account
                else:
                    result.debit_account = account
                result.warnings.append(WARN_SINGLE_ACCOUNT)
                self._score(result, "account")

        result.narration = STRATEGIES["narration"].detect(payload)
        if result.narration:
            self._score(result, "narration")
        else:
            result.narration = describe_payload(dict(payload))

        result.confidence = min(round(result.confidence, 6), 1.0)
        return result


def detect_fields(payload: Mapping[str, Any], single_account_side: str = "debit") -> DetectionResult:
    return FieldDetector(single_account_side).detect(payload)


__all__ = [
    "CANDIDATE_FIELDS",
    "CONFIDENCE_WEIGHTS",
    "FieldStrategy",
    "FieldDetector",
    "DetectionResult",
    "detect_fields",
    "WARN_NO_DATE",
    "WARN_NO_AMOUNT",
    "WARN_SINGLE_ACCOUNT",
]
