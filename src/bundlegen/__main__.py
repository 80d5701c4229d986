"""Allow ``python -m bundlegen``."""

from bundlegen.cli import main

raise SystemExit(main())
