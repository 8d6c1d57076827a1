"""Uniform random reply selection."""
import logging
import random
from .responses import CATEGORY_TABLE, Category, CategoryRule, ConfigurationError, pools_by_category

logger = logging.getLogger(__name__)


class ResponseSelector:
    """
    Pick one reply from a category's pool.

    Draws use the process-wide `random` generator unless another source
    is injected. Repeats are allowed.
    """

    def __init__(
        self,
        table: tuple[CategoryRule, ...] = CATEGORY_TABLE,
        rng: random.Random | None = None,
    ):
        self.pools = pools_by_category(table)
        self._rng = rng or random

    def initialize(self) -> None:
        """Check every pool can be drawn from."""
        logger.info(f"Initializing {self.__class__.__name__}")
        for category, pool in self.pools.items():
            if not pool:
                raise ConfigurationError(f"Empty reply pool for category: {category.value}")

    def select(self, category: Category) -> str:
        """Return a uniformly drawn member of the category's pool."""
        pool = self.pools.get(category)
        if not pool:
            raise ConfigurationError(f"No replies available for category: {category.value}")
        return pool[self._rng.randrange(len(pool))]
