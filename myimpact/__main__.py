"""Allow `python -m myimpact`."""

import sys

from myimpact.main import main

sys.exit(main())
