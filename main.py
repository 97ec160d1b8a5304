"""LcfTrans: translation catalogs for RPG Maker 2000/2003 games.

Launch with: python main.py DIRECTORY (-c | -u | -m MDIR)
"""

import sys

from lcftrans.cli import main


if __name__ == "__main__":
    sys.exit(main())
