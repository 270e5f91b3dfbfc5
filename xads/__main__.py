import sys

from xads.cli import main

sys.exit(main())
