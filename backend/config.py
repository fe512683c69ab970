import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///lexiclash.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Comma separated list of origins allowed to open the socket
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173')
    # Disconnect grace windows (seconds)
    HOST_GRACE_SEC = int(os.environ.get('HOST_GRACE_SEC', '300'))
    PLAYER_GRACE_SEC = int(os.environ.get('PLAYER_GRACE_SEC', '30'))
    # Host arbitration window after a round ends; pending words default to valid afterwards
    ARBITRATION_TIMEOUT_SEC = int(os.environ.get('ARBITRATION_TIMEOUT_SEC', '60'))
    # Countdown broadcast period while a round is running
    TIME_UPDATE_INTERVAL_SEC = float(os.environ.get('TIME_UPDATE_INTERVAL_SEC', '1'))
    # Round duration policy (seconds)
    DEFAULT_ROUND_SEC = int(os.environ.get('DEFAULT_ROUND_SEC', '180'))
    MIN_ROUND_SEC = int(os.environ.get('MIN_ROUND_SEC', '30'))
    MAX_ROUND_SEC = int(os.environ.get('MAX_ROUND_SEC', '600'))
    # Minimum active players to start a round
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_PLAYERS_PER_ROOM = int(os.environ.get('MAX_PLAYERS_PER_ROOM', '20'))
    MIN_WORD_LENGTH = int(os.environ.get('MIN_WORD_LENGTH', '3'))
    # Directory of <language>.txt word lists. Unset means every word goes to the host.
    DICTIONARY_DIR = os.environ.get('DICTIONARY_DIR')
    DICTIONARY_TIMEOUT_SEC = float(os.environ.get('DICTIONARY_TIMEOUT_SEC', '2'))
    # Best-effort room snapshots
    SNAPSHOTS_ENABLED = os.environ.get('SNAPSHOTS_ENABLED', '1') == '1'
    SNAPSHOT_TTL_SEC = int(os.environ.get('SNAPSHOT_TTL_SEC', '3600'))
