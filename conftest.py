"""Configure pytest for the EAV platform."""
import os
import sys
from pathlib import Path

# =============================================================================
# Test Environment Configuration
# =============================================================================
# Cheap bcrypt work factor for anything that reads config from the environment
os.environ.setdefault("BCRYPT_ROUNDS", "4")

# Add project root to path so tests can import app/auth/persistence
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
