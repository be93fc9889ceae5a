"""Entry point: python -m wifiverify"""

import sys

from wifiverify.main import main

if __name__ == "__main__":
    sys.exit(main())
