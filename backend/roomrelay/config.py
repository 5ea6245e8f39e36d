import os

DEFAULT_ALLOWED_ORIGINS = (
    'http://localhost:5173,'
    'https://multiplayer-r3f.vercel.app,'
    'https://multiplayer.strategyfox.in'
)


def _csv(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3001'))
    # Room codes: 36^6 combinations with the default alphabet
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    ROOM_CODE_ALPHABET = os.environ.get('ROOM_CODE_ALPHABET', 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789')
    CORS_ALLOWED_ORIGINS = _csv(os.environ.get('CORS_ALLOWED_ORIGINS', DEFAULT_ALLOWED_ORIGINS))
    # Optional: serve a built frontend from STATIC_DIR
    SERVE_STATIC = os.environ.get('SERVE_STATIC', 'false').lower() == 'true'
    STATIC_DIR = os.environ.get('STATIC_DIR', 'dist')
