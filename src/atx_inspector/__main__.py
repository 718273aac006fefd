"""Allow ``python -m atx_inspector``."""

import sys

from atx_inspector.main import main

sys.exit(main())
