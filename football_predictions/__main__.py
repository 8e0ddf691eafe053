"""Allow `python -m football_predictions`."""

import sys

from football_predictions.cli import main

sys.exit(main())
