import sys

from wordfreq.client import main

sys.exit(main())
