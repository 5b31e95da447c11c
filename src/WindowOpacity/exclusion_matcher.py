"""
Exclusion matching for window identities.
"""
import logging
from typing import Callable, Optional

from .pattern_cache import PatternCache

logger = logging.getLogger(__name__)


class ExclusionMatcher:
    """
    Decide whether a window identity is excluded from opacity changes.

    The raw exclusion string is read through raw_reader on every call.
    Callers must not cache it themselves: the PatternCache decides whether
    the list needs to be recompiled, so a configuration change is picked up
    on the next event.
    """

    def __init__(self, raw_reader: Callable[[], Optional[str]], cache: Optional[PatternCache] = None):
        """
        :param raw_reader: Accessor returning the current raw exclusion string
        :param cache: PatternCache to use (a private one is created if omitted)
        """
        self.raw_reader = raw_reader
        self.cache = cache or PatternCache()

    def is_excluded(self, identity: str) -> bool:
        """
        Check an identity against the configured exclusions.

        :param identity: Window identity (see models.window_identity)
        :return: True if the window must be left untouched
        """
        if not identity:
            return False

        identity = identity.lower()
        patterns = self.cache.get_patterns(self.raw_reader)

        if identity in patterns.exact:
            logger.debug(f"'{identity}' excluded by exact pattern")
            return True

        for fragment in patterns.contains:
            if fragment in identity:
                logger.debug(f"'{identity}' excluded by contains pattern '{fragment}'")
                return True

        return False
