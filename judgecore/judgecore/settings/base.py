from pathlib import Path
import os

# === Paths ===
# base.py está en: <root>/judgecore/judgecore/settings/base.py
BASE_DIR = Path(__file__).resolve().parents[3]  # <root>

# === Seguridad / Debug ===
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-secret-key-change-me")
DEBUG = os.environ.get("DEBUG", "1") == "1"
ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "127.0.0.1,localhost").split(",")

# === Apps ===
INSTALLED_APPS = [
    # Django core
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Apps del proyecto
    "judgecore.apps.contests",
    "judgecore.apps.judging",
    "judgecore.apps.scoring",
    "judgecore.apps.leaderboard",
]

# === Middleware ===
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# === URLs raíz del proyecto ===
ROOT_URLCONF = "judgecore.judgecore.urls"

# === Templates (solo el admin) ===
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# === WSGI ===
WSGI_APPLICATION = "judgecore.judgecore.wsgi.application"

# === Base de datos (SQLite por defecto) ===
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# === i18n / tz ===
LANGUAGE_CODE = "es"
TIME_ZONE = "America/New_York"
USE_I18N = True
USE_TZ = True

# === Static ===
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# === Leaderboard ===
# Quién recibe los deltas de ranking tras cada recálculo (ruta importable).
LEADERBOARD_NOTIFIER = os.environ.get(
    "LEADERBOARD_NOTIFIER", "judgecore.apps.leaderboard.notifier.SignalNotifier"
)
# Reintentos del recálculo fallido (segundos entre intentos, backoff creciente).
LEADERBOARD_RECOMPUTE_RETRY_DELAYS = tuple(
    int(x) for x in os.environ.get("LEADERBOARD_RETRY_DELAYS", "2,10,60").split(",") if x.strip()
)
# Concursos que refresca el comando programado `recompute_leaderboards`.
LEADERBOARD_ACTIVE_CONTEST_STATUSES = ("RUNNING", "ENDED")
LEADERBOARD_PAGE_SIZE = int(os.environ.get("LEADERBOARD_PAGE_SIZE", "50"))

# === Logging ===
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "judgecore": {
            "handlers": ["console"],
            "level": os.environ.get("JUDGECORE_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
