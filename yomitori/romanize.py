"""
Romanization module for yomitori.

Converts kana readings to romaji for the text parser's romaji reading
mode. Katakana is folded to hiragana first; digraphs (きゃ) are matched
before single kana and small tsu doubles the following consonant. A long
vowel mark with no kana before it is kept as '-'.
"""

import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Union

from yomitori.characters import convert_katakana_to_hiragana

# ============================================================================
# Kana Tables
# ============================================================================

HEPBURN_KANA_TABLE: Dict[str, str] = {
    'あ': 'a', 'い': 'i', 'う': 'u', 'え': 'e', 'お': 'o',
    'か': 'ka', 'き': 'ki', 'く': 'ku', 'け': 'ke', 'こ': 'ko',
    'さ': 'sa', 'し': 'shi', 'す': 'su', 'せ': 'se', 'そ': 'so',
    'た': 'ta', 'ち': 'chi', 'つ': 'tsu', 'て': 'te', 'と': 'to',
    'な': 'na', 'に': 'ni', 'ぬ': 'nu', 'ね': 'ne', 'の': 'no',
    'は': 'ha', 'ひ': 'hi', 'ふ': 'fu', 'へ': 'he', 'ほ': 'ho',
    'ま': 'ma', 'み': 'mi', 'む': 'mu', 'め': 'me', 'も': 'mo',
    'や': 'ya', 'ゆ': 'yu', 'よ': 'yo',
    'ら': 'ra', 'り': 'ri', 'る': 'ru', 'れ': 're', 'ろ': 'ro',
    'わ': 'wa', 'ゐ': 'wi', 'ゑ': 'we', 'を': 'wo',
    'ん': "n'",
    'が': 'ga', 'ぎ': 'gi', 'ぐ': 'gu', 'げ': 'ge', 'ご': 'go',
    'ざ': 'za', 'じ': 'ji', 'ず': 'zu', 'ぜ': 'ze', 'ぞ': 'zo',
    'だ': 'da', 'ぢ': 'ji', 'づ': 'zu', 'で': 'de', 'ど': 'do',
    'ば': 'ba', 'び': 'bi', 'ぶ': 'bu', 'べ': 'be', 'ぼ': 'bo',
    'ぱ': 'pa', 'ぴ': 'pi', 'ぷ': 'pu', 'ぺ': 'pe', 'ぽ': 'po',
    'ゔ': 'vu',
    'ぁ': 'a', 'ぃ': 'i', 'ぅ': 'u', 'ぇ': 'e', 'ぉ': 'o',
    'ゃ': 'ya', 'ゅ': 'yu', 'ょ': 'yo', 'ゎ': 'wa',
    'ー': '-',
    # Digraphs
    'きゃ': 'kya', 'きゅ': 'kyu', 'きょ': 'kyo',
    'しゃ': 'sha', 'しゅ': 'shu', 'しぇ': 'she', 'しょ': 'sho',
    'ちゃ': 'cha', 'ちゅ': 'chu', 'ちぇ': 'che', 'ちょ': 'cho',
    'にゃ': 'nya', 'にゅ': 'nyu', 'にょ': 'nyo',
    'ひゃ': 'hya', 'ひゅ': 'hyu', 'ひょ': 'hyo',
    'みゃ': 'mya', 'みゅ': 'myu', 'みょ': 'myo',
    'りゃ': 'rya', 'りゅ': 'ryu', 'りょ': 'ryo',
    'ぎゃ': 'gya', 'ぎゅ': 'gyu', 'ぎょ': 'gyo',
    'じゃ': 'ja', 'じゅ': 'ju', 'じぇ': 'je', 'じょ': 'jo',
    'ぢゃ': 'ja', 'ぢゅ': 'ju', 'ぢょ': 'jo',
    'びゃ': 'bya', 'びゅ': 'byu', 'びょ': 'byo',
    'ぴゃ': 'pya', 'ぴゅ': 'pyu', 'ぴょ': 'pyo',
    'ふぁ': 'fa', 'ふぃ': 'fi', 'ふぇ': 'fe', 'ふぉ': 'fo',
    'ゔぁ': 'va', 'ゔぃ': 'vi', 'ゔぇ': 've', 'ゔぉ': 'vo',
    'てぃ': 'ti', 'でぃ': 'di', 'とぅ': 'tu', 'どぅ': 'du',
    'うぃ': 'wi', 'うぇ': 'we', 'うぉ': 'wo',
}

KUNREI_OVERRIDES: Dict[str, str] = {
    'し': 'si', 'ち': 'ti', 'つ': 'tu', 'ふ': 'hu', 'じ': 'zi', 'ぢ': 'zi', 'づ': 'zu',
    'しゃ': 'sya', 'しゅ': 'syu', 'しょ': 'syo',
    'ちゃ': 'tya', 'ちゅ': 'tyu', 'ちょ': 'tyo',
    'じゃ': 'zya', 'じゅ': 'zyu', 'じょ': 'zyo',
    'ぢゃ': 'zya', 'ぢゅ': 'zyu', 'ぢょ': 'zyo',
    'を': 'o',
}

SOKUON = 'っ'


# ============================================================================
# Romanization Methods
# ============================================================================

class RomanizationMethod(ABC):
    """Base class for romanization methods."""

    @abstractmethod
    def get_base(self, kana: str) -> Optional[str]:
        """Romanization of a kana or digraph, or None if unknown."""

    def geminate(self, romaji: str) -> str:
        """Apply a preceding small tsu to romaji."""
        if romaji and romaji[0].isalpha() and romaji[0] not in 'aiueon':
            return romaji[0] + romaji
        return romaji

    def simplify(self, text: str) -> str:
        return text

    def split(self, word: str) -> List[Tuple[str, Optional[str]]]:
        """Split kana into (kana, romaji) units; unknown characters map to None."""
        units = []
        i = 0
        while i < len(word):
            pair = word[i:i + 2]
            if len(pair) == 2:
                romaji = self.get_base(pair)
                if romaji is not None:
                    units.append((pair, romaji))
                    i += 2
                    continue
            units.append((word[i], self.get_base(word[i])))
            i += 1
        return units

    def romanize(self, word: str) -> str:
        """
        Romanize a word written in kana.

        Args:
            word: Hiragana or katakana text.

        Returns:
            Romanized string; characters that are not kana are kept.
        """
        word = convert_katakana_to_hiragana(word)
        result = []
        sokuon = False
        for kana, romaji in self.split(word):
            if kana == SOKUON:
                if sokuon:
                    result.append('xtsu')
                sokuon = True
                continue
            if romaji is None:
                romaji = kana
            if sokuon:
                romaji = self.geminate(romaji)
                sokuon = False
            result.append(romaji)
        if sokuon:
            result.append('xtsu')
        return self.simplify(''.join(result))


class GenericRomanization(RomanizationMethod):
    """Romanization driven by a kana table."""

    def __init__(self, kana_table: Optional[Dict[str, str]] = None):
        self.kana_table = kana_table or {}

    def get_base(self, kana: str) -> Optional[str]:
        return self.kana_table.get(kana)


class Hepburn(GenericRomanization):
    """Hepburn romanization."""

    def __init__(self):
        super().__init__(HEPBURN_KANA_TABLE.copy())

    def geminate(self, romaji: str) -> str:
        # っち -> tchi
        if romaji.startswith('ch'):
            return 't' + romaji
        return super().geminate(romaji)

    def simplify(self, text: str) -> str:
        # Remove apostrophe after n if not followed by a vowel or y
        return re.sub(r"n'([^aiueoy]|$)", r"n\1", text)


class KunreiShiki(GenericRomanization):
    """Kunrei-shiki romanization."""

    def __init__(self):
        table = HEPBURN_KANA_TABLE.copy()
        table.update(KUNREI_OVERRIDES)
        super().__init__(table)

    def simplify(self, text: str) -> str:
        return re.sub(r"n'([^aiueoy]|$)", r"n\1", text)


HEPBURN = Hepburn()
KUNREI_SIKI = KunreiShiki()
DEFAULT_METHOD = HEPBURN

ROMANIZATION_METHODS: Dict[str, RomanizationMethod] = {
    'hepburn': HEPBURN,
    'kunrei': KUNREI_SIKI,
    'kunrei-shiki': KUNREI_SIKI,
}


def get_method(name: Union[str, RomanizationMethod]) -> RomanizationMethod:
    """Get a romanization method by name ('hepburn' or 'kunrei')."""
    if isinstance(name, RomanizationMethod):
        return name
    return ROMANIZATION_METHODS.get(name.lower(), DEFAULT_METHOD)


def romanize_kana(kana: str, method: Union[str, RomanizationMethod] = DEFAULT_METHOD) -> str:
    """
    Romanize a kana string (convenience function).

    Example:
        >>> romanize_kana("がっこう")
        'gakkou'
        >>> romanize_kana("きっちり")
        'kitchiri'
    """
    return get_method(method).romanize(kana)
