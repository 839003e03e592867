# Ensure '<repo root>/backend' is on sys.path so 'import app.*' and
# 'import tests.*' work regardless of the pytest rootdir.
import os
from pathlib import Path
import sys

_BACKEND_DIR = Path(__file__).resolve().parent  # <repo>/backend
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

# Settings are read once at import time; pin them before anything imports app.*
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("IS_TESTING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-bearer-tokens")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("FRONTEND_URL", "http://localhost:3000")
os.environ.setdefault("PAYMENT_BYPASS_ENABLED", "false")
