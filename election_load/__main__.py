import sys

from election_load.cli import main

sys.exit(main())
