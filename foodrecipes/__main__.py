import sys

from foodrecipes.cli import main

sys.exit(main())
