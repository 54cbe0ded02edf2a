"""Allow ``python -m compositebuild``."""

from compositebuild.cli import main

main()
