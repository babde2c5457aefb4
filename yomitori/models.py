"""
Pydantic models for yomitori options and dictionary records.

Options mirror the settings object of the browser extension the engine
came from, so both snake_case names and the original camelCase keys are
accepted:

    options = FindTermsOptions.model_validate({
        "general": {"mainDictionary": "JMdict", "compactTags": True},
        "translation": {"convertKatakanaToHiragana": "variant"},
        "dictionaries": {"JMdict": {"priority": 1, "allowSecondarySearches": False}},
    })

Record models validate rows handed to DictionaryDatabase before they are
written.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from yomitori.settings import DEFAULT_MAX_RESULTS, DEFAULT_SCAN_LENGTH


# =============================================================================
# Enumerations
# =============================================================================

class FindTermsMode(str, Enum):
    """Result shaping policy for Translator.find_terms."""
    SIMPLE = 'simple'
    SPLIT = 'split'
    GROUP = 'group'
    MERGE = 'merge'


class WildcardMode(str, Enum):
    """Range lookup direction for wildcard searches."""
    PREFIX = 'prefix'
    SUFFIX = 'suffix'


class TextOption(str, Enum):
    """Toggle for a text normalization: never, always, or try both."""
    OFF = 'false'
    ON = 'true'
    VARIANT = 'variant'


class CollapseEmphatic(str, Enum):
    """Emphatic sequence collapsing: off, collapse repeats, or also drop marks."""
    OFF = 'false'
    ON = 'true'
    FULL = 'full'


class ReadingMode(str, Enum):
    """How readings are rendered by the text parser."""
    NONE = 'none'
    HIRAGANA = 'hiragana'
    KATAKANA = 'katakana'
    ROMAJI = 'romaji'
    DEFAULT = 'default'


def _bool_to_option(value: Any) -> Any:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return value


class _OptionsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=False)


# =============================================================================
# Options
# =============================================================================

class DictionaryOptions(_OptionsModel):
    """Per-dictionary lookup settings."""
    enabled: bool = Field(True, description="Whether the dictionary is searched at all")
    priority: int = Field(0, description="Higher priority dictionaries sort first")
    allow_secondary_searches: bool = Field(
        False,
        description="Allow merge mode to pull this dictionary's senses into a main dictionary sequence",
    )


class GeneralOptions(_OptionsModel):
    # Kept as a plain string: unknown modes yield empty results instead of failing validation
    result_output_mode: str = Field(FindTermsMode.GROUP.value, description="simple, split, group or merge")
    main_dictionary: str = Field('', description="Dictionary whose sequences drive merge mode")
    compact_tags: bool = Field(False, description="Drop tags repeated from the previous definition")
    max_results: int = Field(DEFAULT_MAX_RESULTS, ge=1)


class ScanningOptions(_OptionsModel):
    alphanumeric: bool = Field(True, description="Also scan text that starts with non-Japanese characters")
    length: int = Field(DEFAULT_SCAN_LENGTH, ge=1, description="Characters scanned per lookup")


class TranslationOptions(_OptionsModel):
    convert_half_width_characters: TextOption = TextOption.OFF
    convert_numeric_characters: TextOption = TextOption.OFF
    convert_alphabetic_characters: TextOption = TextOption.OFF
    convert_hiragana_to_katakana: TextOption = TextOption.OFF
    convert_katakana_to_hiragana: TextOption = TextOption.VARIANT
    collapse_emphatic_sequences: CollapseEmphatic = CollapseEmphatic.OFF

    @field_validator('*', mode='before')
    @classmethod
    def _coerce_bool(cls, value):
        return _bool_to_option(value)


class ParsingOptions(_OptionsModel):
    reading_mode: ReadingMode = ReadingMode.HIRAGANA


class FindTermsOptions(_OptionsModel):
    """Everything a lookup needs to know about the caller's configuration."""
    general: GeneralOptions = Field(default_factory=GeneralOptions)
    scanning: ScanningOptions = Field(default_factory=ScanningOptions)
    translation: TranslationOptions = Field(default_factory=TranslationOptions)
    parsing: ParsingOptions = Field(default_factory=ParsingOptions)
    dictionaries: Dict[str, DictionaryOptions] = Field(default_factory=dict)

    def get_enabled_dictionary_map(self) -> Dict[str, DictionaryOptions]:
        """Enabled dictionaries keyed by title, in declaration order."""
        return {title: info for title, info in self.dictionaries.items() if info.enabled}

    def get_secondary_search_dictionary_map(self) -> Dict[str, DictionaryOptions]:
        """Enabled dictionaries that allow secondary searches."""
        return {
            title: info for title, info in self.get_enabled_dictionary_map().items()
            if info.allow_secondary_searches
        }


class FindTermsDetails(_OptionsModel):
    """Per-call lookup details."""
    wildcard: Optional[WildcardMode] = None


# =============================================================================
# Dictionary Records
# =============================================================================

class DictionarySummary(BaseModel):
    """Metadata of an installed dictionary."""
    title: str
    revision: str = ''
    sequenced: bool = False
    version: int = 3


class TermRecord(BaseModel):
    """A term row as written to the store."""
    expression: str
    reading: str = ''
    definition_tags: List[str] = Field(default_factory=list)
    term_tags: List[str] = Field(default_factory=list)
    rules: List[str] = Field(default_factory=list)
    glossary: List[Any] = Field(default_factory=list)
    score: int = 0
    sequence: Optional[int] = None


class TermMetaRecord(BaseModel):
    """Frequency or pitch data for an expression."""
    expression: str
    mode: str = Field(..., pattern='^(freq|pitch)$')
    data: Any


class KanjiRecord(BaseModel):
    character: str
    onyomi: List[str] = Field(default_factory=list)
    kunyomi: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    meanings: List[str] = Field(default_factory=list)
    stats: Dict[str, Union[str, int, float]] = Field(default_factory=dict)


class KanjiMetaRecord(BaseModel):
    character: str
    mode: str = Field('freq', pattern='^freq$')
    data: Any


class TagRecord(BaseModel):
    name: str
    category: str = ''
    order: int = 0
    notes: str = ''
    score: int = 0
