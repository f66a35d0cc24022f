import os
from dotenv import load_dotenv

load_dotenv()

STRAVA_CLIENT_ID = os.getenv("STRAVA_CLIENT_ID")
STRAVA_CLIENT_SECRET = os.getenv("STRAVA_CLIENT_SECRET")
# Optional: when unset the callback URL is derived from the incoming request.
STRAVA_REDIRECT_URI = os.getenv("STRAVA_REDIRECT_URI")

STRAVA_HTTP_TIMEOUT = float(os.getenv("STRAVA_HTTP_TIMEOUT", "10"))
STRAVA_TOKEN_SKEW_SECONDS = int(os.getenv("STRAVA_TOKEN_SKEW_SECONDS", "60"))
STRAVA_PAGE_SIZE = int(os.getenv("STRAVA_PAGE_SIZE", "50"))
STRAVA_SYNC_MAX_PAGES = int(os.getenv("STRAVA_SYNC_MAX_PAGES", "20"))

FRONTEND_URL = os.getenv("FRONTEND_URL", "").rstrip("/")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]

SQLALCHEMY_DATABASE_URL = os.getenv("SQLALCHEMY_DATABASE_URL", "sqlite:///./stravadash.db")

APP_SECRET_KEY = os.getenv("APP_SECRET_KEY", "dev-insecure-change-me")

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
