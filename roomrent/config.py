import os
from datetime import timedelta


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me')
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get('JWT_EXPIRES_HOURS', 6)))

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///roomrent.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', 8))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Registration form "subject" selector -> user role
    SUBJECT_ROLES = {
        'subject1': 'customer',
        'subject2': 'employee',
        'subject3': 'admin',
    }
    ROOM_TYPES = ('study room', 'lab room')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing'
    JWT_SECRET_KEY = 'testing-jwt-secret-key-of-sufficient-length'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = 'DEBUG'
