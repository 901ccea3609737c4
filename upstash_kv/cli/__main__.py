"""Allow ``python -m upstash_kv.cli`` execution."""

import sys

from upstash_kv.cli.admin import main

sys.exit(main())
