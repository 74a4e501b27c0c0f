import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
# Shared secret for both the HTTP login and the push-channel adminAuth event.
# Left unset, every admin authentication fails.
ADMIN_SECRET = os.getenv("ADMIN_SECRET", None)

BROADCAST_INTERVAL_SECONDS = float(os.getenv("BROADCAST_INTERVAL_SECONDS", 3))

SESSION_BACKEND = os.getenv("SESSION_BACKEND", "memory")  # memory | redis
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", 24 * 60 * 60))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "admin_session")
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

PUBLIC_DIR = os.getenv("PUBLIC_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "public"))
