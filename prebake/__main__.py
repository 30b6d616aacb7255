import sys

from prebake.cli import main

sys.exit(main())
