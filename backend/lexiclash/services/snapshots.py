"""Best-effort room durability on top of the SQL database.

Writes are fire-and-forget: they run on a background task (inline when
TESTING) and any failure is logged and swallowed so it can never reach a
client or block the command that triggered it.

Each write is stamped with a generation when it is queued and is skipped
if a later write for the same code was queued after it.
"""

import itertools
import json
import threading
import time

from lexiclash import db
from lexiclash.models import RoomSnapshot


class SnapshotStore:
    def __init__(self, app, socketio=None, ttl: int = 3600):
        self.app = app
        self.socketio = socketio
        self.ttl = ttl
        self._counter = itertools.count(1)
        self._latest = {}
        self._lock = threading.Lock()

    def _spawn(self, fn, *args) -> None:
        if self.app.config.get('TESTING') or self.socketio is None:
            fn(*args)
            return
        try:
            self.socketio.start_background_task(fn, *args)
        except Exception:
            fn(*args)

    def _stamp(self, code: str) -> int:
        with self._lock:
            generation = next(self._counter)
            self._latest[code] = generation
            return generation

    def _write(self, code: str, generation: int, fn, *args) -> None:
        with self._lock:
            if self._latest.get(code) != generation:
                self.app.logger.debug(f"[snapshot-skip] room={code} generation={generation} superseded")
                return
            fn(*args)
            if fn == self.delete:
                self._latest.pop(code, None)

    # ---- fire-and-forget entry points used by the room core ----
    def save(self, code: str, snapshot: dict) -> None:
        self._spawn(self._write, code, self._stamp(code), self.put, code, snapshot, self.ttl)

    def forget(self, code: str) -> None:
        self._spawn(self._write, code, self._stamp(code), self.delete, code)

    # ---- synchronous store operations ----
    def put(self, code: str, snapshot: dict, ttl: int = None) -> None:
        ttl = self.ttl if ttl is None else ttl
        with self.app.app_context():
            try:
                row = db.session.get(RoomSnapshot, code)
                if row is None:
                    row = RoomSnapshot(code=code)
                row.payload = json.dumps(snapshot)
                row.updated_at = time.time()
                row.expires_at = row.updated_at + ttl
                db.session.add(row)
                db.session.commit()
            except Exception as exc:
                db.session.rollback()
                self.app.logger.warning(f"[snapshot-put] room={code} failed: {exc}")

    def get(self, code: str):
        with self.app.app_context():
            try:
                row = db.session.get(RoomSnapshot, code)
                if row is None:
                    return None
                if row.expired:
                    db.session.delete(row)
                    db.session.commit()
                    return None
                return row.to_dict()
            except Exception as exc:
                db.session.rollback()
                self.app.logger.warning(f"[snapshot-get] room={code} failed: {exc}")
                return None

    def delete(self, code: str) -> None:
        with self.app.app_context():
            try:
                RoomSnapshot.query.filter_by(code=code).delete()
                db.session.commit()
            except Exception as exc:
                db.session.rollback()
                self.app.logger.warning(f"[snapshot-delete] room={code} failed: {exc}")

    def purge_expired(self) -> int:
        with self.app.app_context():
            try:
                removed = RoomSnapshot.query.filter(RoomSnapshot.expires_at <= time.time()).delete()
                db.session.commit()
                return removed
            except Exception as exc:
                db.session.rollback()
                self.app.logger.warning(f"[snapshot-purge] failed: {exc}")
                return 0
