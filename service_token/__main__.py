import sys

from service_token.cli import main

sys.exit(main())
