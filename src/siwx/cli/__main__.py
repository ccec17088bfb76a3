"""CLI entry point for siwx.cli module.

Enables execution via: python -m siwx.cli
"""

from siwx.cli.verify_message import main

if __name__ == "__main__":
    main()
