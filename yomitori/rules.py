"""
Deinflection rule table for yomitori.

A reason table maps each grammatical reason (e.g. "past", "negative") to
the ending substitutions that undo it. Part-of-speech constraints are
encoded as RuleFlags bitmasks so that compatibility checks are a single
bitwise AND.

Reason table file format (JSON):
    {
        "past": [
            {"kanaIn": "た", "kanaOut": "る", "rulesIn": [], "rulesOut": ["v1"]},
            ...
        ],
        ...
    }
"""

import json
import logging
from dataclasses import dataclass
from enum import IntFlag
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from yomitori.errors import RuleTableError

logger = logging.getLogger(__name__)


# ============================================================================
# Rule Flags
# ============================================================================

class RuleFlags(IntFlag):
    """Part-of-speech categories understood by the deinflector."""
    NONE = 0
    V1 = 0b0000001     # Verb ichidan
    V5 = 0b0000010     # Verb godan
    VS = 0b0000100     # Verb suru
    VK = 0b0001000     # Verb kuru
    ADJ_I = 0b0010000  # Adjective i
    IRU = 0b0100000    # Intermediate -iru endings for progressive or perfect tense


RULE_TYPES: Dict[str, RuleFlags] = {
    'v1': RuleFlags.V1,
    'v5': RuleFlags.V5,
    'vs': RuleFlags.VS,
    'vk': RuleFlags.VK,
    'adj-i': RuleFlags.ADJ_I,
    'iru': RuleFlags.IRU,
}


def rules_to_rule_flags(rules: Iterable[str]) -> RuleFlags:
    """
    Convert rule names to a RuleFlags bitmask.

    Unknown names are ignored so that newer dictionaries carrying extra
    part-of-speech tags still load.
    """
    value = RuleFlags.NONE
    for rule in rules:
        bits = RULE_TYPES.get(rule)
        if bits is None:
            continue
        value |= bits
    return value


def rules_compatible(candidate_rules: int, rules: int) -> bool:
    """A candidate with no constraint (0) accepts anything."""
    return candidate_rules == 0 or (candidate_rules & rules) != 0


# ============================================================================
# Reason Table
# ============================================================================

@dataclass(frozen=True)
class ReasonVariant:
    """A single ending substitution for a reason."""
    kana_in: str
    kana_out: str
    rules_in: RuleFlags
    rules_out: RuleFlags


RuleTable = List[Tuple[str, List[ReasonVariant]]]


def normalize_reasons(reasons: Dict[str, List[dict]]) -> RuleTable:
    """
    Convert a human-authored reason table into a RuleTable.

    Args:
        reasons: Mapping of reason name to a list of
            {kanaIn, kanaOut, rulesIn, rulesOut} entries.

    Returns:
        List of (reason, variants) pairs in table order.

    Raises:
        RuleTableError: If an entry is missing a required key.
    """
    normalized: RuleTable = []
    for reason, reason_info in reasons.items():
        variants = []
        for entry in reason_info:
            try:
                variants.append(ReasonVariant(
                    kana_in=entry['kanaIn'],
                    kana_out=entry['kanaOut'],
                    rules_in=rules_to_rule_flags(entry['rulesIn']),
                    rules_out=rules_to_rule_flags(entry['rulesOut']),
                ))
            except (KeyError, TypeError) as e:
                raise RuleTableError(f"Malformed variant for reason {reason!r}: {entry!r}") from e
        normalized.append((reason, variants))
    return normalized


def load_reasons(path: Optional[Union[str, Path]] = None) -> Dict[str, List[dict]]:
    """
    Load a reason table from a JSON file.

    Args:
        path: Path to the JSON file. Defaults to settings.DEINFLECT_PATH.
    """
    if path is None:
        from yomitori.settings import DEINFLECT_PATH
        path = DEINFLECT_PATH

    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            reasons = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RuleTableError(f"Failed to load reason table {path}: {e}") from e

    if not isinstance(reasons, dict):
        raise RuleTableError(f"Reason table {path} must be a JSON object")

    logger.debug(f"Loaded {len(reasons)} deinflection reasons from {path}")
    return reasons
