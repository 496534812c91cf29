"""Allow ``python -m health_sentinel``."""

from health_sentinel.cli import main

main()
