"""Allow ``python -m gzlog``."""

from .cli import main

raise SystemExit(main())
