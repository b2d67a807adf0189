import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite is only meant for local development and tests
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salonsphere.db")

# Supabase session tokens (HS256, signed with the project JWT secret)
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
SUPABASE_JWT_AUDIENCE = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")

# Query cache TTLs in seconds
CACHE_DEFAULT_TTL = int(os.getenv("CACHE_DEFAULT_TTL", "60"))
CACHE_SETTINGS_TTL = int(os.getenv("CACHE_SETTINGS_TTL", "300"))

# Realtime bridge listens on Redis pub/sub for tenant change notifications
REALTIME_ENABLED = os.getenv("REALTIME_ENABLED", "true").lower() == "true"
REALTIME_CHANNEL_PREFIX = os.getenv("REALTIME_CHANNEL_PREFIX", "tenant_realtime")

# Frontend base URL for CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
