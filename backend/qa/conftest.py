"""
Global pytest configuration.

The environment is fixed before anything imports gstdesk, so the settings
singleton never points at a developer database.
"""
import os
import sys
from pathlib import Path

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("LOG_DIR", str(Path(__file__).parent / ".logs"))

# backend/ on the path so `import gstdesk` works without installing
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))
