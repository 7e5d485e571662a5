"""Text helpers for user-visible titles."""

from __future__ import annotations

import locale


def title_sort_key(title: str) -> str:
    """Case-insensitive collation key for ``title``.

    Ordering follows the process ``LC_COLLATE`` setting; under the default C
    locale this is plain code-point order of the casefolded text.
    """
    # strxfrm rejects embedded NUL characters
    return locale.strxfrm(title.casefold().replace("\x00", ""))
