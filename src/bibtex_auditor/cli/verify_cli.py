#!/usr/bin/env python3
"""CLI entry point for bibtex-verify command.

Cross-checks BibTeX entries against DBLP and Semantic Scholar.
"""

import sys


def main() -> None:
    """Entry point for bibtex-verify command."""
    from bibtex_auditor.verifier import main as verifier_main

    sys.exit(verifier_main())


if __name__ == "__main__":
    main()
