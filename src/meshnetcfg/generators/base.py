"""Shared jinja2 environment for the generators.

Generators are pure: they take already-validated models and return
text. Identical input must give byte-identical output, because the
rendered files are diffed, grepped and parsed by other tooling.
"""

from __future__ import annotations

import jinja2

_ENV = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    autoescape=False,
)


def template(source: str) -> jinja2.Template:
    """Compile a template with strict undefineds and block whitespace trimming."""
    return _ENV.from_string(source)
