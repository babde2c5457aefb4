"""
Tag resolution for yomitori.

Dictionary entries carry bare tag names; the dictionary's tag bank gives
each one a category, order, notes and score. Lookups go through a
per-dictionary cache of base name to tag metadata (misses are cached
too), owned by the Translator and invalidated when the store changes.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Mapping, Optional

from yomitori.definitions import KanjiStat, Tag, TagMeta
from yomitori.settings import DICTIONARY_TAG_ORDER
from yomitori.sorting import sort_kanji_stats

logger = logging.getLogger(__name__)


def get_name_base(name: str) -> str:
    """Part of a tag name before the first ':'."""
    pos = name.find(':')
    return name[:pos] if pos >= 0 else name


def create_tag(name: str, category: Optional[str] = None, notes: Optional[str] = None,
               order: Optional[int] = None, score: Optional[int] = None,
               dictionary: Optional[str] = None) -> Tag:
    return Tag(
        name=name,
        category=category if isinstance(category, str) and category else 'default',
        notes=notes if isinstance(notes, str) else '',
        order=order if isinstance(order, int) else 0,
        score=score if isinstance(score, int) else 0,
        dictionary=dictionary if isinstance(dictionary, str) else '',
    )


def create_dictionary_tag(name: str) -> Tag:
    return create_tag(name, 'dictionary', '', DICTIONARY_TAG_ORDER, 0, name)


class TagCache:
    """Cache of dictionary title -> {base name: TagMeta or None}."""

    def __init__(self):
        self._cache: Dict[str, Dict[str, Optional[TagMeta]]] = {}

    def get_title_cache(self, title: str) -> Dict[str, Optional[TagMeta]]:
        cache = self._cache.get(title)
        if cache is None:
            cache = {}
            self._cache[title] = cache
        return cache

    def invalidate(self):
        if self._cache:
            logger.debug(f"Invalidating tag cache for {len(self._cache)} dictionaries")
        self._cache.clear()

    def __len__(self):
        return sum(len(cache) for cache in self._cache.values())


class TagResolver:
    """Expands tag names through a DictionaryStore, with caching."""

    def __init__(self, database, cache: Optional[TagCache] = None):
        self._database = database
        self.cache = cache if cache is not None else TagCache()

    async def get_tag_meta_list(self, names: List[str], title: str) -> List[Optional[TagMeta]]:
        cache = self.cache.get_title_cache(title)
        tag_meta_list = []
        for name in names:
            base = get_name_base(name)
            if base in cache:
                tag_meta = cache[base]
            else:
                tag_meta = await self._database.find_tag_for_title(base, title)
                cache[base] = tag_meta
            tag_meta_list.append(tag_meta)
        return tag_meta_list

    async def expand_tags(self, names: List[str], title: str) -> List[Tag]:
        """
        Resolve tag names for a dictionary.

        The full name is kept on the returned tag. Names without tag bank
        metadata resolve to a 'default' category tag.
        """
        tag_meta_list = await self.get_tag_meta_list(names, title)
        results = []
        for name, meta in zip(names, tag_meta_list):
            if meta is None:
                results.append(create_tag(name, dictionary=title))
                continue
            results.append(create_tag(name, meta.category, meta.notes, meta.order, meta.score, meta.dictionary))
        return results

    async def expand_stats(self, items: Mapping[str, Any], title: str) -> Dict[str, List[KanjiStat]]:
        """
        Resolve kanji stats and group them by category.

        Each group is sorted by order, then by notes (numeric notes by
        value, first).
        """
        names = list(items.keys())
        tag_meta_list = await self.get_tag_meta_list(names, title)

        stats_groups: Dict[str, List[KanjiStat]] = OrderedDict()
        for name, meta in zip(names, tag_meta_list):
            tag = create_tag(name, dictionary=title) if meta is None else create_tag(
                name, meta.category, meta.notes, meta.order, meta.score, meta.dictionary)
            stat = KanjiStat(name=tag.name, category=tag.category, notes=tag.notes, order=tag.order,
                             score=tag.score, dictionary=tag.dictionary, value=items[name])
            stats_groups.setdefault(stat.category, []).append(stat)

        for group in stats_groups.values():
            sort_kanji_stats(group)
        return dict(stats_groups)
