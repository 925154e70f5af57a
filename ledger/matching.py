"""Free-text to account resolution.

Resolution runs three tiers and the first hit wins:

1. auto-apply mapping rules, highest priority first, matched as a
   case-insensitive substring of the legacy text;
2. exact account name (case-insensitive) or exact account code;
3. fuzzy similarity against active accounts' names and codes, accepted
   only below the distance threshold (0 means identical).

The fuzzy scorer is injected so the similarity metric can change without
touching the tier logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from .models import Account, MappingRule

DEFAULT_THRESHOLD = 0.4
PARTIAL_MIN_LENGTH = 4


@dataclass(frozen=True)
class MatchResult:
    account_id: int
    label: str
    distance: float


class AccountMatcher(Protocol):
    def score(self, query: str, candidates: Sequence[Tuple[int, str]]) -> Optional[MatchResult]:
        ...


def _ratio(left: str, right: str) -> float:
    if not left and not right:
        return 1.0
    return SequenceMatcher(None, left.lower(), right.lower()).ratio()


def _partial_ratio(left: str, right: str) -> float:
    shorter, longer = sorted((left.lower(), right.lower()), key=len)
    if len(shorter) < PARTIAL_MIN_LENGTH:
        return 0.0
    width = len(shorter)
    return max(
        SequenceMatcher(None, shorter, longer[start:start + width]).ratio()
        for start in range(len(longer) - width + 1)
    )


class SequenceMatcherScorer:
    """Best of whole-string and sliding-window ``difflib`` ratios.

    Labels containing digits (account codes) are only compared whole, so a
    code never matches a reference number buried in longer text.
    """

    def similarity(self, query: str, label: str) -> float:
        if any(char.isdigit() for char in label):
            return _ratio(query, label)
        return max(_ratio(query, label), _partial_ratio(query, label))

    def score(self, query: str, candidates: Sequence[Tuple[int, str]]) -> Optional[MatchResult]:
        best: Optional[MatchResult] = None
        for account_id, label in candidates:
            if not label:
                continue
            distance = 1.0 - self.similarity(query, label)
            if best is None or distance < best.distance:
                best = MatchResult(account_id=account_id, label=label, distance=distance)
        return best


def fuzzy_candidates(accounts: Iterable[Account]) -> List[Tuple[int, str]]:
    candidates: List[Tuple[int, str]] = []
    for account in accounts:
        if not account.is_active:
            continue
        candidates.append((account.account_id, account.account_name))
        if account.account_code:
            candidates.append((account.account_id, account.account_code))
    return candidates


def match_rule(text: str, rules: Iterable[MappingRule]) -> Optional[int]:
    lowered = text.lower()
    for rule in sorted(rules, key=lambda r: -r.priority):
        if rule.auto_apply and rule.legacy_text_pattern.lower() in lowered:
            return rule.mapped_account_id
    return None


def match_exact(text: str, accounts: Iterable[Account]) -> Optional[int]:
    lowered = text.lower()
    for account in accounts:
        if account.account_name.lower() == lowered or account.account_code == text:
            return account.account_id
    return None


def resolve_account(
    text: Optional[str],
    accounts: Sequence[Account],
    rules: Sequence[MappingRule],
    matcher: Optional[AccountMatcher] = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[int]:
    if not text:
        return None

    rule_hit = match_rule(text, rules)
    if rule_hit is not None:
        return rule_hit

    exact = match_exact(text, accounts)
    if exact is not None:
        return exact

    matcher = matcher or SequenceMatcherScorer()
    best = matcher.score(text, fuzzy_candidates(accounts))
    if best is not None and best.distance < threshold:
        return best.account_id
    return None


class AccountResolver:
    """Binds the chart of accounts and rules so callers can resolve many labels."""

    def __init__(
        self,
        accounts: Sequence[Account],
        rules: Sequence[MappingRule],
        matcher: Optional[AccountMatcher] = None,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        self.accounts = list(accounts)
        self.rules = list(rules)
        self.matcher = matcher or SequenceMatcherScorer()
        self.threshold = threshold

    def resolve(self, text: Optional[str]) -> Optional[int]:
        return resolve_account(text, self.accounts, self.rules, self.matcher, self.threshold)


__all__ = [
    "AccountMatcher",
    "AccountResolver",
    "MatchResult",
    "SequenceMatcherScorer",
    "resolve_account",
    "match_rule",
    "match_exact",
    "fuzzy_candidates",
    "DEFAULT_THRESHOLD",
]
