#!/usr/bin/env python3
"""CLI entry point for bibtex-dupes command.

Finds duplicate and near-duplicate entries in a BibTeX file.
"""

import sys


def main() -> None:
    """Entry point for bibtex-dupes command."""
    from bibtex_auditor.duplicates import main as duplicates_main

    sys.exit(duplicates_main())


if __name__ == "__main__":
    main()
