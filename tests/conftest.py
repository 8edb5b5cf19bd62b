import os
import sys

# Ensure project root is on sys.path for `import app`, `import api`, etc.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# api.server builds its app at import time and refuses to start without a key.
os.environ.setdefault("OPENAI_API_KEY", "sk-fake-for-tests")
os.environ.setdefault("RATE_LIMIT_PER_MIN", "0")
