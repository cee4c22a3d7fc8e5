import sys

from servicectl.cli import main

sys.exit(main())
