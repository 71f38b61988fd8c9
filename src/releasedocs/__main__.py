import sys

from releasedocs.cli import main

sys.exit(main())
