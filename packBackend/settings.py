import os
import shutil
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    return int(raw)


# ───────────────────────────── ffmpeg path ─────────────────────────────
# Prefer env, then PATH. Binaries are resolved again at call time.
FFMPEG_BIN = os.environ.get("FFMPEG_BIN") or shutil.which("ffmpeg") or "/usr/bin/ffmpeg"
FFPROBE_BIN = os.environ.get("FFPROBE_BIN") or shutil.which("ffprobe") or "/usr/bin/ffprobe"

# ───────────────────────────── Security ─────────────────────────────
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "django-insecure-pack-backend-dev-only")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h.strip() for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "127.0.0.1,localhost,testserver").split(",") if h.strip()]

CSRF_TRUSTED_ORIGINS = [o.strip() for o in os.environ.get("CSRF_TRUSTED_ORIGINS", "").split(",") if o.strip()]

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "rest_framework",
    "corsheaders",
    "account",
    "access",
    "content",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",  # keep early
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "packBackend.urls"
WSGI_APPLICATION = "packBackend.wsgi.application"

# Behind a TLS-terminating proxy, keep absolute URLs on https
USE_X_FORWARDED_HOST = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ───────────────────────────── Uploads ─────────────────────────────
# Proxied uploads above this are rejected with 413.
UPLOAD_MAX_BYTES = _env_int("UPLOAD_MAX_BYTES", 200 * 1024 * 1024)
# Keep Django from holding whole videos in memory while buffering.
FILE_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024
DATA_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024
UPLOAD_URL_DEFAULT_EXPIRES = 3600

# ───────────────────────────── Object store ─────────────────────────────
MEDIA_STORE = {
    "BUCKET": os.environ.get("MEDIA_STORE_BUCKET", "packs"),
    "ENDPOINT_URL": os.environ.get("MEDIA_STORE_ENDPOINT") or None,
    "REGION": os.environ.get("MEDIA_STORE_REGION", "auto"),
    "ACCESS_KEY_ID": os.environ.get("MEDIA_STORE_ACCESS_KEY_ID") or None,
    "SECRET_ACCESS_KEY": os.environ.get("MEDIA_STORE_SECRET_ACCESS_KEY") or None,
    "PUBLIC_BASE_URL": os.environ.get("MEDIA_STORE_PUBLIC_BASE_URL", ""),
}
SIGNED_VIDEO_URL_TTL_SECONDS = _env_int("SIGNED_VIDEO_URL_TTL_SECONDS", 4 * 60 * 60)

# ───────────────────────────── Access tokens ─────────────────────────────
ACCESS_TOKEN_SECRET = os.environ.get("ACCESS_TOKEN_SECRET", SECRET_KEY)
ACCESS_TOKEN_TTL_SECONDS = _env_int("ACCESS_TOKEN_TTL_SECONDS", 120)
# Shared with the catalog service that performs entitlement checks.
CATALOG_SERVICE_KEY = os.environ.get("CATALOG_SERVICE_KEY", "")
IDENTITY_TOKEN_SECRET = os.environ.get("IDENTITY_TOKEN_SECRET", SECRET_KEY)

# ───────────────────────────── Watermarking ─────────────────────────────
WATERMARK_DOMAIN = os.environ.get("WATERMARK_DOMAIN", "packs.example.com")
VIDEO_WATERMARK_TIMEOUT_SECONDS = _env_int("VIDEO_WATERMARK_TIMEOUT_SECONDS", 300)
REPROCESS_IN_BACKGROUND = _env_bool("REPROCESS_IN_BACKGROUND", True)
REPROCESS_MAX_WORKERS = _env_int("REPROCESS_MAX_WORKERS", 4)

# ───────────────────────────── CORS ─────────────────────────────
CORS_ORIGIN_ALLOW_ALL = False
CORS_ALLOWED_ORIGINS = [o.strip() for o in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:5173").split(",") if o.strip()]

CORS_ALLOW_METHODS = [
    "GET", "POST", "OPTIONS",
]

CORS_ALLOW_HEADERS = [
    "accept", "accept-encoding", "authorization", "content-type", "dnt", "origin",
    "user-agent", "x-requested-with",
    "x-service-key",
]

CORS_EXPOSE_HEADERS = [
    "Content-Length", "Content-Disposition", "X-Watermark",
]

# ───────────────────────────── Auth / DRF ─────────────────────────────
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "account.jwt.JWTAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "EXCEPTION_HANDLER": "packBackend.exceptions.api_exception_handler",
}

# ───────────────────────────── Logging ─────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}
