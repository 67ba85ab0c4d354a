"""
SmartQuiz Configuration
Every value can be overridden from the environment.
"""
import os
import tempfile
from typing import Optional


def env_flag(name: str, default: str = "1") -> bool:
    return (os.environ.get(name, default) or "").strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration"""
    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-change-in-production')

    # Database (only used when QUIZ_STORE=sql)
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///smartquiz.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}

    # Fix Render's postgres:// URL
    if SQLALCHEMY_DATABASE_URI.startswith('postgres://'):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace('postgres://', 'postgresql://', 1)

    # Quiz storage backend: memory or sql
    QUIZ_STORE = os.environ.get('QUIZ_STORE', 'memory')

    # File uploads
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024  # 25MB
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(tempfile.gettempdir(), 'smartquiz_uploads')

    # PDF export: optional TrueType fonts for non-Latin quiz text
    PDF_FONT_PATH = os.environ.get('PDF_FONT_PATH', '')
    PDF_BOLD_FONT_PATH = os.environ.get('PDF_BOLD_FONT_PATH', '')

    # OpenAI
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
    OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o')
    OPENAI_TIMEOUT = float(os.environ.get('OPENAI_TIMEOUT', '60'))

    # Quiz generation
    DEFAULT_QUESTION_COUNT = int(os.environ.get('DEFAULT_QUESTION_COUNT', '5'))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # App Version
    APP_VERSION = os.environ.get('APP_VERSION', '2026.10')
    BUILD_TIME = os.environ.get('BUILD_TIME', '')
    GIT_COMMIT = os.environ.get('GIT_COMMIT', '')

    # Feature Flags
    FEATURE_SLIDE_FALLBACK = env_flag('FEATURE_SLIDE_FALLBACK')
    FEATURE_STRICT_ANSWERS = env_flag('FEATURE_STRICT_ANSWERS')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    QUIZ_STORE = 'memory'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    OPENAI_API_KEY = ''
    FEATURE_SLIDE_FALLBACK = True
    FEATURE_STRICT_ANSWERS = True


# Config dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(env: Optional[str] = None):
    """Get configuration class for environment"""
    env = env or os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])
