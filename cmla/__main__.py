import sys

from cmla.cmla import main

sys.exit(main())
