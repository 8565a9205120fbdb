"""
Identifier case conversion for generated code.

Word splitting follows the usual rules for mixed-case identifiers: any
non-alphanumeric character separates words, a lowercase letter followed by
an uppercase one ends a word (``swapBaseIn`` -> swap, base, in), and an
uppercase run followed by a lowercase letter ends before its last capital
(``AMMConfig`` -> AMM, Config). Digits stay with the word they follow.

These rules decide discriminator seeds, so they must not drift.
"""

import keyword
import re
from collections import Counter
from typing import AbstractSet, List, Sequence, Tuple

from .diagnostics import DuplicateName, ReservedName


PYTHON_KEYWORDS = frozenset(keyword.kwlist)

_SEPARATOR = re.compile(r"[^0-9A-Za-z]+")

_BOUNDARY = 0
_LOWER = 1
_UPPER = 2


def split_words(name: str) -> List[str]:
    """Split an identifier into its words."""
    words = []
    for chunk in _SEPARATOR.split(name):
        start = 0
        mode = _BOUNDARY
        for i, c in enumerate(chunk):
            if i + 1 == len(chunk):
                words.append(chunk[start:])
                break
            nxt = chunk[i + 1]
            if c.islower():
                next_mode = _LOWER
            elif c.isupper():
                next_mode = _UPPER
            else:
                next_mode = mode

            if next_mode == _LOWER and nxt.isupper():
                words.append(chunk[start:i + 1])
                start = i + 1
                mode = _BOUNDARY
            elif mode == _UPPER and c.isupper() and nxt.islower():
                words.append(chunk[start:i])
                start = i
                mode = _BOUNDARY
            else:
                mode = next_mode
    return words


def to_snake_case(name: str) -> str:
    return "_".join(word.lower() for word in split_words(name))


def to_shouty_snake_case(name: str) -> str:
    return "_".join(word.upper() for word in split_words(name))


def to_pascal_case(name: str) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in split_words(name))


def conditional_pascal_case(name: str) -> str:
    """PascalCase names containing underscores; keep every other name as written."""
    if "_" in name:
        return to_pascal_case(name)
    return name


def python_identifier(name: str) -> str:
    """Make ``name`` usable as a Python identifier (``from`` -> ``from_``)."""
    if keyword.iskeyword(name):
        return f"{name}_"
    if name[:1].isdigit():
        return f"_{name}"
    return name


def field_name(name: str) -> str:
    """Attribute name for a declared field or account."""
    return python_identifier(to_snake_case(name))


def check_names(scope: str, names: Sequence[Tuple[str, str]], reserved: AbstractSet[str] = frozenset()):
    """
    Check the identifiers generated for one scope.

    ``names`` pairs each declared name with its generated identifier. Every
    declared name whose identifier is shared raises DuplicateName; names
    whose identifier is reserved or not an identifier raise ReservedName.
    """
    counts = Counter(ident for _, ident in names)
    dups = [declared for declared, ident in names if counts[ident] > 1]
    if dups:
        raise DuplicateName(scope, dups)
    bad = [declared for declared, ident in names if ident in reserved or not ident.isidentifier()]
    if bad:
        raise ReservedName(scope, bad)
