"""
Exclusion pattern parser.

The exclusion list is a comma separated string of tokens. Three token
shapes are accepted:

    [Firefox]   exact match against the window identity
    {term}      substring match against the window identity
    konsole     bare word, exact match

Matching is case-insensitive: every stored pattern is lower-cased.
Any syntax error invalidates the whole list.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Tuple

CONSECUTIVE_COMMAS_ERROR = "Consecutive commas detected (empty tokens due to ',,')."
TRAILING_COMMA_ERROR = "Trailing comma detected (empty token at the end)."

_CONSECUTIVE_COMMAS_RE = re.compile(r",\s*,")
_TRAILING_COMMA_RE = re.compile(r",\s*$")
_EXACT_RE = re.compile(r"^\[([^\[\]]+)\]$")
_CONTAINS_RE = re.compile(r"^\{([^{}]+)\}$")
_BRACKET_CHARS = frozenset("[]{}")


class TokenKind(Enum):
    """Shape of a single exclusion token."""
    EXACT = "exact"
    CONTAINS = "contains"
    EMPTY_EXACT = "empty_exact"
    EMPTY_CONTAINS = "empty_contains"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ClassifiedToken:
    """
    A token after classification.

    Attributes:
        kind: Token shape
        value: Lower-cased pattern for valid tokens, the original token otherwise
    """
    kind: TokenKind
    value: str

    @property
    def is_error(self) -> bool:
        return self.kind not in (TokenKind.EXACT, TokenKind.CONTAINS)

    def error_message(self) -> Optional[str]:
        if self.kind == TokenKind.EMPTY_EXACT:
            return f'Empty exact token "{self.value}"'
        if self.kind == TokenKind.EMPTY_CONTAINS:
            return f'Empty contains token "{self.value}"'
        if self.kind == TokenKind.MALFORMED:
            return f'Malformed token: "{self.value}"'
        return None


@dataclass(frozen=True)
class PatternSet:
    """
    Compiled exclusion patterns.

    Attributes:
        exact: Lower-cased identities that must match exactly
        contains: Lower-cased substrings, in configuration order
    """
    exact: FrozenSet[str] = frozenset()
    contains: Tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not self.exact and not self.contains


EMPTY_PATTERNS = PatternSet()


@dataclass
class ParseResult:
    """Parser output. Patterns are unusable when errors is non-empty."""
    patterns: PatternSet = EMPTY_PATTERNS
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def usable_patterns(self) -> PatternSet:
        """Return the patterns, or an empty set if parsing reported errors."""
        return self.patterns if self.ok else EMPTY_PATTERNS


def classify_token(token: str) -> ClassifiedToken:
    """
    Classify a single trimmed, non-empty token.

    :param token: Token text without surrounding whitespace
    :return: ClassifiedToken describing the token shape
    """
    match = _EXACT_RE.match(token)
    if match:
        inner = match.group(1).strip().lower()
        if not inner:
            return ClassifiedToken(TokenKind.EMPTY_EXACT, token)
        return ClassifiedToken(TokenKind.EXACT, inner)

    match = _CONTAINS_RE.match(token)
    if match:
        inner = match.group(1).strip().lower()
        if not inner:
            return ClassifiedToken(TokenKind.EMPTY_CONTAINS, token)
        return ClassifiedToken(TokenKind.CONTAINS, inner)

    if not _BRACKET_CHARS.intersection(token):
        return ClassifiedToken(TokenKind.EXACT, token.lower())

    return ClassifiedToken(TokenKind.MALFORMED, token)


def split_tokens(raw: str) -> List[str]:
    """Split on commas and trim; empty pieces are dropped."""
    return [piece.strip() for piece in raw.split(",") if piece.strip()]


def check_structure(raw: str) -> Optional[str]:
    """
    Check comma structure before tokenizing.

    :return: Error message, or None if the structure is valid
    """
    if _CONSECUTIVE_COMMAS_RE.search(raw):
        return CONSECUTIVE_COMMAS_ERROR
    if _TRAILING_COMMA_RE.search(raw):
        return TRAILING_COMMA_ERROR
    return None


def fold_tokens(tokens: Iterable[ClassifiedToken]) -> ParseResult:
    """
    Fold classified tokens into a ParseResult.

    Every token is visited so that all errors are reported. If any token
    is an error the resulting pattern set is empty.
    """
    exact = set()
    contains = []
    errors = []

    for token in tokens:
        if token.kind == TokenKind.EXACT:
            exact.add(token.value)
        elif token.kind == TokenKind.CONTAINS:
            contains.append(token.value)
        else:
            errors.append(token.error_message())

    if errors:
        return ParseResult(patterns=EMPTY_PATTERNS, errors=errors)
    return ParseResult(patterns=PatternSet(frozenset(exact), tuple(contains)))


def parse(raw: Optional[str]) -> ParseResult:
    """
    Parse a raw exclusion list.

    :param raw: Comma separated exclusion tokens, may be empty or None
    :return: ParseResult with compiled patterns and any syntax errors
    """
    if not raw:
        return ParseResult()

    structure_error = check_structure(raw)
    if structure_error:
        return ParseResult(errors=[structure_error])

    return fold_tokens(classify_token(token) for token in split_tokens(raw))
