from __future__ import annotations

import os

os.environ.setdefault("REPLICATE_API_TOKEN", "r8-test-token")
os.environ.setdefault("GENERATION_MODE", "sync")
