"""Allow ``python -m filebucket``."""

from .cli import main

main()
