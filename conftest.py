"""Global pytest configuration."""

import os

# Tests run against in-memory repositories and fakes unless a test builds its own engine
os.environ.pop("DATABASE_URL", None)
os.environ.pop("GRAPH_ACCESS_TOKEN", None)
os.environ.pop("OPENAI_API_KEY", None)
