"""Allow ``python -m technitium_cli.mcp_server``."""

from technitium_cli.mcp_server import main

main()
