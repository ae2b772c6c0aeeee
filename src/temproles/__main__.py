import sys

from temproles.cli import main

sys.exit(main())
