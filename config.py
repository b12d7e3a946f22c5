from decouple import config, Csv


def _get_db_uri():
    uri = config('DATABASE_URL', default='sqlite:///incidents.db')
    if uri.startswith('postgres://'):
        uri = uri.replace('postgres://', 'postgresql://', 1)
    if uri.startswith('postgresql') and 'sslmode' not in uri:
        uri += ('&' if '?' in uri else '?') + 'sslmode=' + config('DB_SSLMODE', default='require')
    return uri


def engine_options(uri):
    # SQLite uses a static/single-thread pool and rejects sizing options
    if uri.startswith('sqlite'):
        return {}
    return {
        'pool_pre_ping': True,
        'pool_recycle': 300,
        'pool_size': 5,
        'max_overflow': 10
    }


class Config:
    SQLALCHEMY_DATABASE_URI = _get_db_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = engine_options(SQLALCHEMY_DATABASE_URI)

    # AI providers
    USE_OPENAI = config('USE_OPENAI', default=False, cast=bool)
    OPENAI_API_KEY = config('OPENAI_API_KEY', default='')
    OPENAI_MODEL = config('OPENAI_MODEL', default='gpt-4o')
    OPENAI_TIMEOUT = config('OPENAI_TIMEOUT', default=20.0, cast=float)
    PROMPT_VERSION = config('PROMPT_VERSION', default='v1.0')

    USE_TRANSCRIPTION = config('USE_TRANSCRIPTION', default=True, cast=bool)
    TRANSCRIBE_MODEL = config('TRANSCRIBE_MODEL', default='whisper-1')

    # Calls per client per minute
    ENRICH_RATE_LIMIT = config('ENRICH_RATE_LIMIT', default=20, cast=int)
    TRANSCRIBE_RATE_LIMIT = config('TRANSCRIBE_RATE_LIMIT', default=10, cast=int)

    # Audio uploads up to 25MB
    MAX_CONTENT_LENGTH = config('MAX_CONTENT_LENGTH', default=25 * 1024 * 1024, cast=int)

    # Browser origins allowed to call /api
    CORS_ORIGINS = config('CORS_ORIGINS', default='*', cast=Csv())

    BUILD_SHA = config('BUILD_SHA', default='local-dev')
    LOG_LEVEL = config('LOG_LEVEL', default='INFO')
