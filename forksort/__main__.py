"""Allow ``python -m forksort``; this is also how workers are started."""

import sys

from .cli import main

sys.exit(main())
