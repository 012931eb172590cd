# statagen/store.py
"""
Generation Store

Per-category history of generated code sections.

The store maps each catalog category to a tuple of CodeSection, newest
first. It only grows: sections are prepended, never deduplicated, never
evicted. History is kept in memory for the lifetime of the session with
no cap, so a very long session grows without bound; export it with
utils.save_do_file if it needs to outlive the process.
"""

from typing import Dict, Mapping, Tuple

from .catalog import CATEGORY_IDS
from .state import CodeSection


Store = Mapping[str, Tuple[CodeSection, ...]]


def empty_store() -> Dict[str, Tuple[CodeSection, ...]]:
    """One empty history per catalog category."""
    return {category: () for category in CATEGORY_IDS}


def prepend_section(store: Store, category: str, section: CodeSection) -> Dict[str, Tuple[CodeSection, ...]]:
    """
    Return a new store with section placed at the head of category.

    The input store is not modified; other categories are shared as-is
    since their tuples are immutable.
    """
    updated = dict(store)
    updated[category] = (section,) + tuple(store.get(category, ()))
    return updated
