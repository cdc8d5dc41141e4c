"""
Centralised settings for the citizen services portal.

Values come from the environment or a local .env file via python-decouple.
"""

from decouple import config, Csv

# ── Database ─────────────────────────────────────────────────────────
DATABASE_URL = config("DATABASE_URL", default="sqlite:///./portal.db")

# ── Auth ─────────────────────────────────────────────────────────────
SECRET_KEY = config("SECRET_KEY", default="dev-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = config("ACCESS_TOKEN_EXPIRE_MINUTES", default=60 * 24, cast=int)
BCRYPT_ROUNDS = config("BCRYPT_ROUNDS", default=12, cast=int)

# ── Storage ──────────────────────────────────────────────────────────
STORAGE_ROOT = config("STORAGE_ROOT", default="uploads")
DOCUMENTS_BUCKET = "application-documents"
PUBLIC_BASE_URL = config("PUBLIC_BASE_URL", default="http://localhost:8000")
MAX_UPLOAD_SIZE = config("MAX_UPLOAD_SIZE", default=10 * 1024 * 1024, cast=int)  # 10MB
ALLOWED_EXTENSIONS = {".pdf", ".jpg", ".jpeg", ".png"}

# ── HTTP ─────────────────────────────────────────────────────────────
CORS_ORIGINS = config("CORS_ORIGINS", default="http://localhost:8080", cast=Csv())
LOG_LEVEL = config("LOG_LEVEL", default="INFO")

# ── Payments ─────────────────────────────────────────────────────────
MOCK_PAYMENT_METHOD = "mock"
