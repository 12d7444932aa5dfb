"""Allow ``python -m ebs_backup``."""

from .cli import main

raise SystemExit(main())
