import sys

from focus_sync.main import main

sys.exit(main())
