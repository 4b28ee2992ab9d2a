# File: blockschema/__main__.py
"""
Module entry point::

    python -m blockschema --input content_blocks.yaml --output tables.json

Delegates to ``blockschema.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from blockschema.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
