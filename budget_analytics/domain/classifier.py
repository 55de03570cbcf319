"""Transaction classification - keyword rules combined with learned user patterns"""

import logging
import re
import threading
import unicodedata
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from budget_analytics.domain.exceptions import ContractViolationError
from budget_analytics.domain.models import (
    Category,
    ClassificationStats,
    ClassificationSuggestion,
    LearnedPattern,
)

KEYWORD_CONFIDENCE = 70
FALLBACK_CONFIDENCE = 50
EXPLICIT_CONFIDENCE = 100
LEARNED_STEP = 10  # Confidence gained per confirmation
HIGH_CONFIDENCE = 80
MAX_SUGGESTIONS = 3

# Starting confidence of a pattern by the source of its first confirmation
LEARNED_BASE_CONFIDENCE = {"manual": 50, "confirmed": 60}
LEARN_SOURCES = tuple(LEARNED_BASE_CONFIDENCE)

# Fuzzy matching of descriptions against learned signatures
WORD_SIMILARITY_WEIGHT = 80
AMOUNT_SIMILARITY_BONUS = 20
AMOUNT_TOLERANCE = 0.3  # Relative difference still counted as "the same amount"
MIN_SIMILARITY = 30

# (keyword, category name, category type), evaluated in order
KEYWORD_RULES: List[Tuple[str, str, str]] = [
    # Groceries
    ("supermarket", "Groceries", "expense"),
    ("grocery", "Groceries", "expense"),
    ("bakery", "Groceries", "expense"),
    ("butcher", "Groceries", "expense"),
    ("market", "Groceries", "expense"),
    # Eating out
    ("restaurant", "Restaurants", "expense"),
    ("pizza", "Restaurants", "expense"),
    ("cafe", "Restaurants", "expense"),
    ("coffee", "Restaurants", "expense"),
    ("doordash", "Restaurants", "expense"),
    ("ubereats", "Restaurants", "expense"),
    # Transport
    ("uber", "Transport", "expense"),
    ("lyft", "Transport", "expense"),
    ("taxi", "Transport", "expense"),
    ("fuel", "Transport", "expense"),
    ("gas station", "Transport", "expense"),
    ("parking", "Transport", "expense"),
    ("toll", "Transport", "expense"),
    ("metro", "Transport", "expense"),
    # Housing
    ("rent", "Housing", "expense"),
    ("mortgage", "Housing", "expense"),
    ("electricity", "Housing", "expense"),
    ("water bill", "Housing", "expense"),
    ("internet", "Housing", "expense"),
    ("phone", "Housing", "expense"),
    # Health
    ("pharmacy", "Health", "expense"),
    ("doctor", "Health", "expense"),
    ("hospital", "Health", "expense"),
    ("clinic", "Health", "expense"),
    ("dentist", "Health", "expense"),
    # Leisure
    ("cinema", "Leisure", "expense"),
    ("hotel", "Leisure", "expense"),
    ("travel", "Leisure", "expense"),
    ("theater", "Leisure", "expense"),
    ("concert", "Leisure", "expense"),
    # Education
    ("tuition", "Education", "expense"),
    ("course", "Education", "expense"),
    ("school", "Education", "expense"),
    ("university", "Education", "expense"),
    ("bookstore", "Education", "expense"),
    # Subscriptions and tech
    ("netflix", "Subscriptions", "expense"),
    ("spotify", "Subscriptions", "expense"),
    ("streaming", "Subscriptions", "expense"),
    ("apple.com", "Subscriptions", "expense"),
    # Clothing
    ("clothing", "Clothing", "expense"),
    ("shoes", "Clothing", "expense"),
    # Income
    ("salary", "Salary", "income"),
    ("payroll", "Salary", "income"),
    ("dividend", "Investment Income", "income"),
    ("interest paid", "Investment Income", "income"),
    # Investments
    ("brokerage", "Investments", "investment"),
    ("invest", "Investments", "investment"),
    ("retirement fund", "Investments", "investment"),
    ("savings transfer", "Investments", "investment"),
]

_PUNCTUATION = re.compile(r"[^\w\s]")
_DIGITS = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")


def fold_text(text: str) -> str:
    """Lowercase and strip accents so 'Café' matches 'cafe'"""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip()


def normalize_signature(description: str) -> str:
    """
    Key used to look up learned patterns.

    Digit runs (store numbers, dates, card suffixes) and punctuation are
    dropped so that "UBER *TRIP 4821" and "Uber trip 1177" share a signature.
    """
    folded = fold_text(description)
    folded = _DIGITS.sub(" ", folded)
    folded = _PUNCTUATION.sub(" ", folded)
    return _WHITESPACE.sub(" ", folded).strip()


def learned_confidence(hit_count: int, source: str = "manual") -> int:
    """Confidence of a learned pattern, non-decreasing in hit_count and capped at 100"""
    base = LEARNED_BASE_CONFIDENCE.get(source, LEARNED_BASE_CONFIDENCE["manual"])
    return min(100, base + LEARNED_STEP * (max(hit_count, 1) - 1))


def similarity_score(signature: str, amount_cents: int, pattern: LearnedPattern) -> float:
    """
    How closely a transaction resembles a learned pattern, 0 to 100.

    An identical signature scores 100. Otherwise shared words are worth up
    to 80 points and an amount within 30% of the learned one adds 20.
    """
    if signature == pattern.signature:
        return 100.0

    words = signature.split()
    pattern_words = pattern.signature.split()
    if not words or not pattern_words:
        return 0.0
    common = [w for w in words if w in pattern_words]
    score = len(common) / max(len(words), len(pattern_words)) * WORD_SIMILARITY_WEIGHT

    largest = max(abs(amount_cents), abs(pattern.amount_cents))
    difference = abs(amount_cents - pattern.amount_cents) / largest if largest else 0.0
    if difference < AMOUNT_TOLERANCE:
        score += AMOUNT_SIMILARITY_BONUS
    return score


class PatternStore(Protocol):
    """Repository for learned signature -> category associations"""

    def increment(
        self,
        user_id: str,
        signature: str,
        category_id: int,
        source: str,
        amount_cents: int,
        seen_at: datetime,
    ) -> LearnedPattern:
        """
        Atomically create the pattern with hit_count 1 or add one to it.

        source and amount_cents are recorded when the pattern is created and
        kept on later confirmations.
        """
        ...

    def list_patterns(self, user_id: str) -> List[LearnedPattern]:
        ...


class InMemoryPatternStore:
    """Thread-safe pattern store for tests and single-process use"""

    def __init__(self):
        self._patterns: Dict[Tuple[str, str, int], LearnedPattern] = {}
        self._lock = threading.Lock()

    def increment(
        self,
        user_id: str,
        signature: str,
        category_id: int,
        source: str,
        amount_cents: int,
        seen_at: datetime,
    ) -> LearnedPattern:
        key = (user_id, signature, category_id)
        with self._lock:
            pattern = self._patterns.get(key)
            if pattern is None:
                pattern = LearnedPattern(signature, category_id, 0, seen_at, source, amount_cents)
                self._patterns[key] = pattern
            pattern.hit_count += 1
            pattern.last_seen_at = seen_at
            return replace(pattern)

    def list_patterns(self, user_id: str) -> List[LearnedPattern]:
        with self._lock:
            return [replace(p) for (owner, _, _), p in self._patterns.items() if owner == user_id]


def rank_suggestions(candidates: Iterable[ClassificationSuggestion]) -> List[ClassificationSuggestion]:
    """
    Deduplicate by category name and order by confidence, strictly descending.

    Names are compared case- and accent-insensitively. Candidates arrive in
    priority order (learned, rules, fallback); equal confidences keep that
    order and each later tie is demoted by one point.
    """
    best: Dict[str, ClassificationSuggestion] = {}
    for candidate in candidates:
        key = fold_text(candidate.category_name)
        current = best.get(key)
        if current is None or candidate.confidence > current.confidence:
            best[key] = candidate

    ordered = sorted(best.values(), key=lambda s: s.confidence, reverse=True)

    ranked: List[ClassificationSuggestion] = []
    for suggestion in ordered:
        confidence = suggestion.confidence
        if ranked and confidence >= ranked[-1].confidence:
            confidence = ranked[-1].confidence - 1
        if confidence <= 0:
            break
        ranked.append(ClassificationSuggestion(suggestion.category_name, suggestion.category_type, confidence))
        if len(ranked) == MAX_SUGGESTIONS:
            break
    return ranked


class Classifier:
    """
    Suggests categories for a user's transactions and learns from confirmations.

    Args:
        store: Learned pattern repository
        categories: The user's category directory
        user_id: Owner of the learned patterns
    """

    def __init__(self, store: PatternStore, categories: Iterable[Category], user_id: str):
        self.store = store
        self.user_id = user_id
        self.categories_by_id: Dict[int, Category] = {c.id: c for c in categories}
        self.categories_by_name: Dict[str, Category] = {
            fold_text(c.name): c for c in self.categories_by_id.values()
        }

    def classify(
        self,
        description: str,
        amount_cents: int,
        explicit_category: Optional[str] = None,
    ) -> List[ClassificationSuggestion]:
        """
        Return up to three category suggestions, best first.

        An explicit category that exists in the directory wins outright.
        Otherwise learned patterns and keyword rules are merged; with neither,
        the sign of the amount picks a generic income or expense category.

        Learned patterns match on similarity, not only on an identical
        signature: a pattern's confidence is scaled by its similarity score
        and patterns scoring 30 or less are ignored.
        """
        if explicit_category and explicit_category.strip():
            category = self.categories_by_name.get(fold_text(explicit_category))
            if category is not None:
                return [ClassificationSuggestion(category.name, category.type, EXPLICIT_CONFIDENCE)]
            logging.debug(
                "Ignoring unknown explicit category",
                extra={"user_id": self.user_id, "category": explicit_category},
            )

        signature = normalize_signature(description)
        rule_matches = self._match_rules(description)
        candidates: List[ClassificationSuggestion] = []

        for pattern in self.store.list_patterns(self.user_id):
            category = self.categories_by_id.get(pattern.category_id)
            if category is None:
                continue
            score = similarity_score(signature, amount_cents, pattern)
            if score <= MIN_SIMILARITY:
                continue

            confidence = round(learned_confidence(pattern.hit_count, pattern.source) * score / 100)
            rule = rule_matches.get(fold_text(category.name))
            if rule is not None and pattern.signature == signature:
                # Rule and history agree: boost the rule guess
                boosted = rule.confidence + LEARNED_STEP * pattern.hit_count
                confidence = max(confidence, min(100, boosted))
            candidates.append(ClassificationSuggestion(category.name, category.type, confidence))

        candidates.extend(rule_matches.values())

        if not candidates:
            candidates.append(self._fallback(amount_cents))

        return rank_suggestions(candidates)

    def learn(
        self,
        description: str,
        amount_cents: int,
        category_id: int,
        source: str = "manual",
        seen_at: Optional[datetime] = None,
    ) -> LearnedPattern:
        """Record a user's categorization; only ever increments the pattern's hit count"""
        if category_id not in self.categories_by_id:
            raise ContractViolationError(f"Unknown category id: {category_id}")
        if source not in LEARN_SOURCES:
            raise ContractViolationError(f"Unknown learn source: {source!r}")

        signature = normalize_signature(description)
        if not signature:
            raise ContractViolationError("Description has no classifiable text")

        pattern = self.store.increment(
            self.user_id,
            signature,
            category_id,
            source,
            amount_cents,
            seen_at or datetime.now(timezone.utc),
        )
        logging.info(
            "Learned classification",
            extra={
                "user_id": self.user_id,
                "signature": signature,
                "category_id": category_id,
                "hit_count": pattern.hit_count,
                "amount_cents": amount_cents,
            },
        )
        return pattern

    def stats(self) -> ClassificationStats:
        """Totals over everything learned for the user, top five categories by confirmations"""
        patterns = self.store.list_patterns(self.user_id)
        counts: Dict[str, int] = {}
        for pattern in patterns:
            category = self.categories_by_id.get(pattern.category_id)
            name = category.name if category else "Unknown"
            counts[name] = counts.get(name, 0) + pattern.hit_count

        top = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:5]
        return ClassificationStats(
            total_patterns=len(patterns),
            high_confidence_count=sum(
                1 for p in patterns if learned_confidence(p.hit_count, p.source) >= HIGH_CONFIDENCE
            ),
            top_categories=top,
        )

    def _resolve(self, name: str, category_type: str, confidence: int) -> ClassificationSuggestion:
        """Suggestion under the directory's own spelling and type when the user has the category"""
        category = self.categories_by_name.get(fold_text(name))
        if category is not None:
            return ClassificationSuggestion(category.name, category.type, confidence)
        return ClassificationSuggestion(name, category_type, confidence)

    def _match_rules(self, description: str) -> Dict[str, ClassificationSuggestion]:
        """Folded category name -> suggestion for every matching keyword rule"""
        folded = fold_text(description)
        matches: Dict[str, ClassificationSuggestion] = {}
        for keyword, name, category_type in KEYWORD_RULES:
            key = fold_text(name)
            if keyword in folded and key not in matches:
                matches[key] = self._resolve(name, category_type, KEYWORD_CONFIDENCE)
        return matches

    def _fallback(self, amount_cents: int) -> ClassificationSuggestion:
        # Sign only decides income vs expense; investment needs an explicit rule or pattern
        if amount_cents > 0:
            return self._resolve("Income", "income", FALLBACK_CONFIDENCE)
        return self._resolve("Expenses", "expense", FALLBACK_CONFIDENCE)
