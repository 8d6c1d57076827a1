"""Keyword intent classifier."""
import logging
from .responses import CATEGORY_TABLE, Category, CategoryRule, validate_table

logger = logging.getLogger(__name__)


class IntentClassifier:
    """
    Map a raw message to exactly one Category.

    Rules are tested in table order and the first rule with a trigger
    contained in the lower-cased message wins. Matching is plain substring
    containment, so "hi" also matches inside "this". Messages matching no
    rule fall back to Category.GENERIC.
    """

    def __init__(self, table: tuple[CategoryRule, ...] = CATEGORY_TABLE):
        self.table = table

    def initialize(self) -> None:
        """Validate the category table."""
        logger.info(f"Initializing {self.__class__.__name__}")
        validate_table(self.table)

    def classify(self, message: str) -> Category:
        """Return the first category whose triggers occur in the message."""
        lowered = message.lower()
        for rule in self.table:
            for trigger in rule.triggers:
                if trigger in lowered:
                    logger.debug(f"'{message}' matched '{trigger}' -> {rule.category.value}")
                    return rule.category
        logger.debug(f"'{message}' matched nothing -> {Category.GENERIC.value}")
        return Category.GENERIC
