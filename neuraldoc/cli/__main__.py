"""Allow ``python -m neuraldoc.cli`` execution."""

from neuraldoc.cli.manage import main

main()
