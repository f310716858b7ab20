import sys

from novelti.cli import main

sys.exit(main())
