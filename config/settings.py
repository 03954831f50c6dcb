from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("SECRET_KEY", "django-insecure-cargotrack-dev-key")
DEBUG = os.environ.get("DEBUG", "1") == "1"
ALLOWED_HOSTS = ["127.0.0.1", "localhost"]

# Application definition

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'core',
    'shipments.apps.ShipmentsConfig',
    'fleet',
    'operations',
    'billing',
    'accounting',
]


MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        "DIRS": [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'


# Database
# DB_ENGINE=mysql di server (Laragon / produksi), sqlite untuk test & dev lokal

DB_ENGINE = os.environ.get('DB_ENGINE', 'mysql')

if DB_ENGINE == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        }
    }
else:
    try:
        import MySQLdb  # noqa: F401
    except ImportError:
        import pymysql; pymysql.install_as_MySQLdb()

    DATABASES = {
        "default": {
            'ENGINE': 'django.db.backends.mysql',
            "NAME": os.environ.get("DB_NAME", "cargotrack"),
            "USER": os.environ.get("DB_USER", "root"),
            "PASSWORD": os.environ.get("DB_PASSWORD", ""),  # kosongkan kalau default Laragon
            "HOST": os.environ.get("DB_HOST", "127.0.0.1"),
            "PORT": os.environ.get("DB_PORT", "3306"),
            "OPTIONS": {
                "charset": "utf8mb4",
            },
        }
    }


CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "cargotrack",
    }
}


# Password validation

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
]


# Internationalization

LANGUAGE_CODE = 'id'

TIME_ZONE = "Asia/Jakarta"

USE_I18N = True

USE_TZ = True


STATIC_URL = 'static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


REST_FRAMEWORK = {
    "EXCEPTION_HANDLER": "shipments.api.exceptions.domain_exception_handler",
    "DEFAULT_THROTTLE_RATES": {
        "public_track": os.environ.get("PUBLIC_TRACK_RATE", "60/min"),
    },
}


# Domain defaults. Runtime overrides live in core_settings (CoreSetting).
LOGISTICS = {
    # berapa kali create dokumen diulang saat nomor bentrok (DuplicateCode)
    "CODE_RETRY_ATTEMPTS": 3,
    # STT yang sudah ditagih di penagihan LUNAS boleh ditagih ulang?
    "ALLOW_REBILL_PAID": False,
}


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "cargotrack": {
            "handlers": ["console"],
            "level": os.environ.get("CARGOTRACK_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
