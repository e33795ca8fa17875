import os


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-prod')

    # Redis holds the whole state document and the theme string
    REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379')
    STATE_KEY = os.getenv('ARENA_STATE_KEY', 'arena:state')
    THEME_KEY = os.getenv('ARENA_THEME_KEY', 'arena:theme')

    # Registration rules
    MIN_ROSTER_SIZE = int(os.getenv('MIN_ROSTER_SIZE', '4'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    STATE_KEY = 'arena:test:state'
    THEME_KEY = 'arena:test:theme'


class ProductionConfig(Config):
    DEBUG = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
