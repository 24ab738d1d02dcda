"""/etc/frr/daemons edit: switch fabricd on."""

from __future__ import annotations

import re

_FABRICD_RE = re.compile(r'^fabricd=\S*$', re.MULTILINE)


def enable_fabricd(text: str) -> str:
    """Return daemons file text with ``fabricd=yes``.

    Replaces an existing ``fabricd=...`` line, or appends one. Applying
    it twice gives the same text.

    >>> enable_fabricd('zebra=yes\\nfabricd=no\\n')
    'zebra=yes\\nfabricd=yes\\n'
    >>> enable_fabricd('zebra=yes\\n')
    'zebra=yes\\nfabricd=yes\\n'
    """
    if _FABRICD_RE.search(text):
        return _FABRICD_RE.sub("fabricd=yes", text)
    if text and not text.endswith("\n"):
        text += "\n"
    return text + "fabricd=yes\n"


def fabricd_enabled(text: str) -> bool:
    """Check whether a daemons file turns fabricd on.

    >>> fabricd_enabled('fabricd=yes\\n')
    True
    >>> fabricd_enabled('#fabricd=yes\\nfabricd=no\\n')
    False
    """
    return any(line.strip() == "fabricd=yes" for line in text.splitlines())
