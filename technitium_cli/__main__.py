"""Allow ``python -m technitium_cli``."""

from technitium_cli.cli import main

main()
