"""Entry point for ``python -m tinyget``."""

from tinyget.cli import main


main()
