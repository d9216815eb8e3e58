"""Allow ``python -m kbase.cli`` execution."""

from kbase.cli.knowledge import main

main()
