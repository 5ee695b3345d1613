#!/usr/bin/env python3
"""Generate test JWT tokens for API smoke testing."""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backoffice.api.deps import issue_smoke_token
from backoffice.core.auth import Role

# Generate SuperAdmin token
superadmin_token = issue_smoke_token("superadmin-test", role=Role.SUPER_ADMIN)
print(f"SuperAdmin Token:\n{superadmin_token}\n")

# Generate admin token
admin_token = issue_smoke_token("admin-test", role=Role.ADMIN, name="Test Admin")
print(f"Admin Token:\n{admin_token}")
