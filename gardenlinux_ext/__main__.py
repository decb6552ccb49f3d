import sys

from gardenlinux_ext.cli import main

sys.exit(main())
