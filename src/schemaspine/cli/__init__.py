"""
CLI layer for schemaspine.

Inspects the schema snapshot beside a database and plans (or applies) the
migrations that bring the live tables up to date with it. The commands only
handle terminal transport; the work is done by ``schemaspine.migrations``.

Entry point::

    schemaspine --help
"""

from schemaspine.cli.app import app

__all__ = ["app"]
