"""
Deinflection for yomitori.

Reverses productive inflection by repeatedly stripping known endings,
recording the chain of reasons applied. Each resulting candidate carries
the rule mask its base form must be compatible with.

Example:
    >>> d = load_default_deinflector()
    >>> [(c.term, c.reasons) for c in d.deinflect("食べなかった")][:1]
    [('食べなかった', [])]
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from yomitori.rules import RuleTable, normalize_reasons, load_reasons


@dataclass
class Deinflection:
    """
    A deinflection candidate.

    Attributes:
        source: The (normalized) text that was deinflected.
        raw_source: The matching substring of the original input text.
        term: Candidate base form.
        rules: Rule mask the base form must match (0 = unconstrained).
        reasons: Reasons applied, most recently applied first.
        database_definitions: Store entries accepted for this candidate,
            filled in by the translator after lookup.
    """
    source: str
    raw_source: str
    term: str
    rules: int
    reasons: List[str]
    database_definitions: list = field(default_factory=list)


class Deinflector:
    """Applies a RuleTable to surface strings."""

    def __init__(self, reasons: Dict[str, List[dict]]):
        self.reasons: RuleTable = normalize_reasons(reasons)

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None) -> 'Deinflector':
        """Create a deinflector from a reason table JSON file."""
        return cls(load_reasons(path))

    def deinflect(self, source: str, raw_source: Optional[str] = None) -> List[Deinflection]:
        """
        Generate all deinflection candidates for source.

        The first candidate is always the untouched source with an empty
        reason chain. The candidate list doubles as the work queue: each
        entry is expanded once, in order, and new candidates are appended.
        The closure ends when the read index catches up with the list.

        Args:
            source: Text to deinflect.
            raw_source: Original text that source was derived from.

        Returns:
            List of candidates in breadth-first order.
        """
        if raw_source is None:
            raw_source = source

        results = [Deinflection(
            source=source,
            raw_source=raw_source,
            term=source,
            rules=0,
            reasons=[],
        )]

        i = 0
        while i < len(results):
            current = results[i]
            i += 1
            term = current.term
            for reason, variants in self.reasons:
                for variant in variants:
                    if current.rules != 0 and (current.rules & variant.rules_in) == 0:
                        continue
                    if not term.endswith(variant.kana_in):
                        continue
                    stem_length = len(term) - len(variant.kana_in)
                    if stem_length + len(variant.kana_out) <= 0:
                        continue

                    results.append(Deinflection(
                        source=source,
                        raw_source=raw_source,
                        term=term[:stem_length] + variant.kana_out,
                        rules=int(variant.rules_out),
                        reasons=[reason, *current.reasons],
                    ))

        return results


_DEFAULT_DEINFLECTOR: Optional[Deinflector] = None


def load_default_deinflector() -> Deinflector:
    """Get the process-wide deinflector built from the bundled reason table."""
    global _DEFAULT_DEINFLECTOR
    if _DEFAULT_DEINFLECTOR is None:
        _DEFAULT_DEINFLECTOR = Deinflector.from_file()
    return _DEFAULT_DEINFLECTOR
