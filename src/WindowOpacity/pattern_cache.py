"""
Single-entry cache for compiled exclusion patterns.

The cache is keyed on the raw configuration string: as long as the string
does not change the parser is not invoked again. Invalid lists are cached
as an empty pattern set so their errors are logged only once.
"""
import logging
import threading
from typing import Callable, Optional

from .exclusion_patterns import EMPTY_PATTERNS, ParseResult, PatternSet, parse

logger = logging.getLogger(__name__)


class PatternCache:
    """Memoize the parser output for the last seen raw exclusion string."""

    def __init__(
        self,
        parser: Callable[[Optional[str]], ParseResult] = parse,
        debug_logs: Callable[[], bool] = lambda: False
    ):
        """
        Initialize the cache.

        :param parser: Function turning a raw string into a ParseResult
        :param debug_logs: Returns True when parse errors should be logged visibly
        """
        self._parser = parser
        self._debug_logs = debug_logs
        self._lock = threading.Lock()
        self._has_entry = False
        self._last_raw: Optional[str] = None
        self._patterns: PatternSet = EMPTY_PATTERNS
        self.parse_count = 0

    @property
    def last_raw(self) -> Optional[str]:
        return self._last_raw

    def get_patterns(self, raw_reader: Callable[[], Optional[str]]) -> PatternSet:
        """
        Read the current raw string and return its compiled patterns.

        :param raw_reader: Accessor returning the current raw exclusion string
        :return: Cached or freshly parsed PatternSet
        """
        return self.update(raw_reader())

    def update(self, raw: Optional[str]) -> PatternSet:
        """
        Return patterns for raw, parsing only if raw differs from the cached value.

        :param raw: Raw exclusion string
        :return: PatternSet for raw (empty if raw has syntax errors)
        """
        with self._lock:
            if self._has_entry and raw == self._last_raw:
                return self._patterns

            result = self._parser(raw)
            self.parse_count += 1

            if result.errors:
                self._log_errors(raw, result)

            self._last_raw = raw
            self._patterns = result.usable_patterns()
            self._has_entry = True
            return self._patterns

    def invalidate(self) -> None:
        """Forget the cached entry; the next read parses again."""
        with self._lock:
            self._has_entry = False
            self._last_raw = None
            self._patterns = EMPTY_PATTERNS

    def _log_errors(self, raw: Optional[str], result: ParseResult) -> None:
        level = logging.WARNING if self._debug_logs() else logging.DEBUG
        logger.log(level, "Invalid excluded windows list, no windows will be excluded")
        logger.log(level, f"  excludedWindows = {raw!r}")
        for error in result.errors:
            logger.log(level, f"  {error}")
