"""Allow ``python -m apidiff``."""

import sys

from .cli import main

sys.exit(main())
