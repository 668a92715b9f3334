"""Allow ``python -m mediaquery.cli`` execution."""

from mediaquery.cli.commands import main

main()
