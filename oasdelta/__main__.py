import sys

from oasdelta.cli import main

sys.exit(main())
