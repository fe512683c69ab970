from lexiclash import db
import json
import time


class RoomSnapshot(db.Model):
    """Best-effort copy of a live room, kept for ``expires_at - now`` seconds."""
    __tablename__ = 'room_snapshot'
    code = db.Column(db.String(16), primary_key=True)
    payload = db.Column(db.Text, nullable=False)
    expires_at = db.Column(db.Float, nullable=False, index=True)
    updated_at = db.Column(db.Float, nullable=False, default=time.time)

    @property
    def expired(self):
        return self.expires_at <= time.time()

    def to_dict(self):
        try:
            data = json.loads(self.payload)
        except ValueError:
            data = {}
        data['code'] = self.code
        data['expires_at'] = self.expires_at
        return data
