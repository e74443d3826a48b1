import sys

from gopro_join.cli import main


sys.exit(main())
