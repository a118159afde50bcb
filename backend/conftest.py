# Test environment must be fixed before anything under 'app' is imported:
# settings, the engine and the password context are built at import time.
import os
from pathlib import Path
import sys

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["GEOCODING_PROVIDER"] = "mock"
os.environ["EMAIL_PROVIDER"] = "console"
os.environ["BCRYPT_ROUNDS"] = "4"

_BACKEND_DIR = Path(__file__).resolve().parent
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

# Operational scripts are not tests
collect_ignore_glob = ["scripts/*.py"]
