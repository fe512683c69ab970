from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import time
import click
from config import Config

NAMESPACE = '/ws'

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _origins(config):
    raw = config.get('CORS_ORIGINS') or ''
    return [o.strip() for o in raw.split(',') if o.strip()]


def create_app(config_class=Config, scheduler=None, clock=None, dictionary=None):
    """Application factory.

    ``scheduler``, ``clock`` and ``dictionary`` replace the production
    timer machinery, wall clock and file-backed word lists (tests pass
    deterministic versions).
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = _origins(flask_app.config)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from lexiclash.main import main
    flask_app.register_blueprint(main)

    from lexiclash.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    flask_app.extensions['rooms'] = _build_room_manager(flask_app, scheduler, clock, dictionary)

    # Register Socket.IO event handlers
    from lexiclash.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('snapshots-purge')
    def snapshots_purge_command():
        """Deletes expired room snapshots."""
        store = flask_app.extensions.get('snapshots')
        removed = store.purge_expired() if store else 0
        print(f'Removed {removed} expired snapshot(s).')

    flask_app.cli.add_command(snapshots_purge_command)

    return flask_app


def _build_room_manager(flask_app, scheduler=None, clock=None, dictionary=None):
    from lexiclash.services.rooms import RoomManager, RoomSettings
    from lexiclash.services.rooms.dictionary import DictionaryLookup, WordDictionary
    from lexiclash.services.rooms.timers import BackgroundScheduler
    from lexiclash.services.snapshots import SnapshotStore

    cfg = flask_app.config
    logger = flask_app.logger

    if dictionary is None:
        dictionary = WordDictionary(cfg.get('DICTIONARY_DIR'), logger)
        dictionary.load()
    lookup = DictionaryLookup(dictionary, timeout=float(cfg.get('DICTIONARY_TIMEOUT_SEC', 2)), logger=logger)

    store = None
    if cfg.get('SNAPSHOTS_ENABLED', True):
        store = SnapshotStore(flask_app, socketio, ttl=int(cfg.get('SNAPSHOT_TTL_SEC', 3600)))
    flask_app.extensions['snapshots'] = store

    def emit(event, payload, to=None):
        socketio.emit(event, payload, to=to, namespace=NAMESPACE)

    return RoomManager(
        emit,
        scheduler or BackgroundScheduler(socketio, logger),
        settings=RoomSettings.from_config(cfg),
        lookup=lookup,
        store=store,
        clock=clock or time.time,
        logger=logger,
    )


def get_room_manager():
    return current_app.extensions['rooms']
