from __future__ import annotations

import logging
import random
from typing import Optional

from curlpoke.core.types import GuideDirection

logger = logging.getLogger(__name__)

_CHOICES = (GuideDirection.LEFT, GuideDirection.STRAIGHT, GuideDirection.RIGHT)


class GuideDirector:
    """Picks the side the player has to poke next. Uniform, memoryless."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        self.current: GuideDirection = self.rng.choice(_CHOICES)

    def next(self) -> GuideDirection:
        self.current = self.rng.choice(_CHOICES)
        logger.debug("guide -> %s", self.current.value)
        return self.current
