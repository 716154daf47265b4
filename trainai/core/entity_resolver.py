"""
Fuzzy matching of extracted names and labels against existing records.

Scores are normalized Levenshtein similarity in [0, 1]:

    similarity = (max_len - distance) / max_len

over lower-cased strings. Thresholds differ per entity type:

- employees: similarity > 0.6 (names are short and near-exact)
- certificate types / courses: similarity > 0.4, taking the best of the
  label and its description/category (labels vary more in phrasing)

Usage:
    from trainai.core.entity_resolver import EntityResolver

    resolver = EntityResolver()
    match = resolver.resolve_employee("Kroes, R.", employees)
    if match:
        print(match.entity_id, match.similarity)

All functions are pure; pools are passed in by the caller.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from rapidfuzz.distance import Levenshtein

from trainai.core.logging import get_logger

logger = get_logger(__name__)

EMPLOYEE_THRESHOLD = 0.6
LABEL_THRESHOLD = 0.4

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class MatchCandidate:
    """A pool entry that cleared the acceptance threshold."""

    entity_id: str
    entity_name: str
    similarity: float


def levenshtein_similarity(a: str, b: str) -> float:
    """Normalized Levenshtein similarity of two strings, case-insensitive."""
    a, b = a.lower(), b.lower()
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - Levenshtein.distance(a, b)) / max_len


def _normalize(value: str) -> str:
    return _WHITESPACE.sub(" ", _PUNCTUATION.sub(" ", value.lower())).strip()


def _token_sorted(value: str) -> str:
    return " ".join(sorted(_normalize(value).split()))


def name_similarity(a: str, b: str) -> float:
    """
    Similarity of two person names or labels.

    Best of the plain comparison, the comparison with punctuation removed, and
    the comparison with tokens sorted, so "Kroes, R." and "R Kroes" are equal.
    """
    return max(
        levenshtein_similarity(a, b),
        levenshtein_similarity(_normalize(a), _normalize(b)),
        levenshtein_similarity(_token_sorted(a), _token_sorted(b)),
    )


def employee_name_variants(employee: dict[str, Any]) -> list[str]:
    """Display name, first/last and preferred-name combinations, and single name parts.

    Single parts let "Ahmed" find Ahmed Yilmaz; two employees sharing that
    part then tie and resolve as ambiguous.
    """
    variants = []
    if employee.get("name"):
        variants.append(employee["name"])

    first = employee.get("first_name") or ""
    last = employee.get("last_name") or ""
    if first or last:
        variants.append(f"{first} {last}".strip())

    preferred = employee.get("roepnaam")
    if preferred:
        variants.append(f"{preferred} {last}".strip())

    variants.extend(part for part in (first, preferred, last) if part)
    return variants


def _employee_score(query: str, employee: dict[str, Any]) -> float:
    needle = query.strip().lower()
    for key in ("email", "employee_number"):
        value = employee.get(key)
        if value and str(value).strip().lower() == needle:
            return 1.0
    return max((name_similarity(query, v) for v in employee_name_variants(employee)), default=0.0)


def _label_score(label_key: str, extra_keys: tuple[str, ...]) -> Callable[[str, dict[str, Any]], float]:
    def score(query: str, record: dict[str, Any]) -> float:
        best = name_similarity(query, record.get(label_key) or "")
        for key in extra_keys:
            if record.get(key):
                best = max(best, name_similarity(query, record[key]))
        return best

    return score


def _display_name(record: dict[str, Any]) -> str:
    if record.get("name"):
        return record["name"]
    if record.get("title"):
        return record["title"]
    return " ".join(filter(None, [record.get("first_name"), record.get("last_name")]))


class EntityResolver:
    """Ranks and resolves free-text references to employees, certificate types and courses."""

    def __init__(
        self,
        employee_threshold: float = EMPLOYEE_THRESHOLD,
        label_threshold: float = LABEL_THRESHOLD,
    ):
        self.employee_threshold = employee_threshold
        self.label_threshold = label_threshold

    def rank(
        self,
        query: str,
        pool: Iterable[dict[str, Any]],
        scorer: Callable[[str, dict[str, Any]], float],
        threshold: float,
    ) -> list[MatchCandidate]:
        """Every pool entry scoring strictly above ``threshold``, best first."""
        if not query or not query.strip():
            return []

        candidates = []
        for record in pool:
            similarity = scorer(query, record)
            if similarity > threshold:
                candidates.append(
                    MatchCandidate(
                        entity_id=str(record["id"]),
                        entity_name=_display_name(record),
                        similarity=round(similarity, 4),
                    )
                )

        # Stable sort keeps pool order among equal scores
        candidates.sort(key=lambda c: c.similarity, reverse=True)
        return candidates

    @staticmethod
    def pick(candidates: list[MatchCandidate]) -> MatchCandidate | None:
        """Top candidate, or None when there is none or the top score is tied."""
        if not candidates:
            return None
        if len(candidates) > 1 and candidates[0].similarity == candidates[1].similarity:
            logger.info(
                f"Ambiguous match: {candidates[0].entity_name!r} and "
                f"{candidates[1].entity_name!r} both scored {candidates[0].similarity}"
            )
            return None
        return candidates[0]

    # Employees

    def rank_employees(self, name: str, employees: Iterable[dict[str, Any]]) -> list[MatchCandidate]:
        return self.rank(name, employees, _employee_score, self.employee_threshold)

    def resolve_employee(self, name: str, employees: Iterable[dict[str, Any]]) -> MatchCandidate | None:
        return self.pick(self.rank_employees(name, employees))

    # Certificate / license types

    def rank_certificate_types(self, label: str, licenses: Iterable[dict[str, Any]]) -> list[MatchCandidate]:
        return self.rank(label, licenses, _label_score("name", ("description", "category")), self.label_threshold)

    def resolve_certificate_type(
        self, label: str, licenses: Iterable[dict[str, Any]]
    ) -> MatchCandidate | None:
        return self.pick(self.rank_certificate_types(label, licenses))

    # Courses

    def rank_courses(self, title: str, courses: Iterable[dict[str, Any]]) -> list[MatchCandidate]:
        return self.rank(title, courses, _label_score("title", ("description",)), self.label_threshold)

    def resolve_course(self, title: str, courses: Iterable[dict[str, Any]]) -> MatchCandidate | None:
        return self.pick(self.rank_courses(title, courses))
