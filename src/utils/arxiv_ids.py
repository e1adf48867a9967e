"""Utilities for arXiv identifiers and feed field normalization.

arXiv has used two identifier schemes:
- Modern (April 2007 onward): ``YYMM.NNNN`` or ``YYMM.NNNNN``, e.g. ``2401.12345``
- Legacy: ``archive/YYMMNNN``, e.g. ``hep-th/9901001`` or ``cs.AI/0601001``

Either may carry a ``vN`` version suffix. Papers are keyed by the base id;
the version is tracked separately.
"""

import re
from typing import Any, List, Tuple

from src.utils.exceptions import InvalidArxivIdError

MODERN_ID_PATTERN = re.compile(r"(\d{4}\.\d{4,5})(v\d+)?")
LEGACY_ID_PATTERN = re.compile(r"([a-z-]+(?:\.[A-Z]{2})?/\d{7})(v\d+)?")


def parse_arxiv_id(value: str) -> Tuple[str, int]:
    """Split an identifier (or abs/pdf URL) into base id and version.

    Args:
        value: Anything containing an arXiv identifier, such as
            ``http://arxiv.org/abs/2401.12345v2`` or ``hep-th/9901001``.

    Returns:
        ``(base_id, version)``; version defaults to 1 when absent.

    Raises:
        InvalidArxivIdError: If no identifier form matches.

    Examples:
        >>> parse_arxiv_id("http://arxiv.org/abs/2401.12345v2")
        ('2401.12345', 2)
        >>> parse_arxiv_id("hep-th/9901001")
        ('hep-th/9901001', 1)
    """
    for pattern in (MODERN_ID_PATTERN, LEGACY_ID_PATTERN):
        match = pattern.search(value or "")
        if match:
            base_id = match.group(1)
            version = int(match.group(2)[1:]) if match.group(2) else 1
            return base_id, version
    raise InvalidArxivIdError(value)


def extract_arxiv_id(value: str) -> str:
    """Return only the base id of ``value``."""
    return parse_arxiv_id(value)[0]


def as_list(value: Any) -> List[Any]:
    """Normalize a one-or-many feed field to a list.

    Feed parsers collapse single-element collections (one author, one
    category, one link) into scalars. Handles:
    - None / empty -> []
    - list / tuple -> list
    - anything else -> [value]
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str) and not value:
        return []
    return [value]
