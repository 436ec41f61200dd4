# ABOUTME: Allows running the planner with `python -m activity_planner <location>`.

import sys

from activity_planner.cli import main

sys.exit(main())
