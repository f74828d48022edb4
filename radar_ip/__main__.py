"""
Radar-IP - Module Entry Point.

Allows running the scanner as a module:
    python -m radar_ip -m <mac> -r <cidr> [options]
"""

import sys

from radar_ip.cli import main

if __name__ == '__main__':
    sys.exit(main())
