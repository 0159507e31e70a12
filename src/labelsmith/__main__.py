"""Allow ``python -m labelsmith``."""

from .app import main

raise SystemExit(main())
