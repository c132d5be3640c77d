"""
Package entry point.

Allows running the application via:

    python -m didact

This simply forwards execution to didact.cli.main().
"""

from didact.cli import main

if __name__ == "__main__":
    main()
