"""sdstatus entry point.

Usage::

    python -m sdstatus scan [OPTIONS] [ONION_URL ...]
    python -m sdstatus l10n INPUTFILE
"""

from __future__ import annotations

import sys

from sdstatus.cli import main

if __name__ == "__main__":
    sys.exit(main())
