"""Category registry: known business units, free-form custom tags, ledger sync."""

import logging
from typing import Iterable, List, Optional

from config.defaults import BU_CATEGORIES, DEFAULT_CATEGORY
from data.ledger import CategoryLedger
from models.batch import Batch
from models.category import CategoryTag

logger = logging.getLogger(__name__)


def normalize_tag(tag) -> str:
    return "" if tag is None else str(tag).strip()


def resolve_category(tag) -> CategoryTag:
    """Classify a tag as one of the core business units or a custom tag.

    Empty tags resolve to the default business unit so that partially entered
    batches still aggregate somewhere.
    """
    value = normalize_tag(tag) or DEFAULT_CATEGORY
    return CategoryTag(value=value, is_known=value in BU_CATEGORIES)


def validate_category(tag) -> str:
    """Entry-time validation: categories may be custom but never blank."""
    value = normalize_tag(tag)
    if not value:
        raise ValueError("Category must not be empty")
    return value


def collect_custom_categories(batches: Iterable[Batch]) -> List[str]:
    """Distinct custom tags used by the batches, in first-seen order."""
    seen = []
    for batch in batches:
        value = normalize_tag(batch.category)
        if value and value not in BU_CATEGORIES and value not in seen:
            seen.append(value)
    return seen


class CategoryRegistry:
    """Resolves tags and mirrors new custom tags into the external ledger."""

    def __init__(self, ledger: Optional[CategoryLedger] = None):
        self.ledger = ledger

    def resolve(self, tag) -> CategoryTag:
        return resolve_category(tag)

    def sync_new_categories(self, tags: Iterable[str]) -> List[str]:
        """Insert the tags missing from the ledger; returns those inserted.

        Raises LedgerError if the ledger cannot be read or written.
        """
        custom = [t for t in dict.fromkeys(normalize_tag(t) for t in tags)
                  if t and t not in BU_CATEGORIES]
        if not custom or self.ledger is None:
            return []

        existing = self.ledger.existing_names(custom)
        missing = [t for t in custom if t not in existing]
        if not missing:
            return []

        inserted = self.ledger.upsert_names(missing)
        logger.debug("Category sync: %d requested, %d inserted", len(missing), len(inserted))
        return inserted
