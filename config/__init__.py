from config.security import SecurityConfig
from config.settings import BaseConfig, DevelopmentConfig, TestingConfig, ProductionConfig

__all__ = [
    'SecurityConfig',
    'BaseConfig',
    'DevelopmentConfig',
    'TestingConfig',
    'ProductionConfig',
]
