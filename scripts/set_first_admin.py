#!/usr/bin/env python3
"""Grant the admin role to an existing user.

Usage: python scripts/set_first_admin.py you@example.com
"""

import sys

sys.path.insert(0, ".")

from linksite.app.admin_cli import main

if __name__ == "__main__":
    sys.exit(main())
