class RoomRejection(Exception):
    """Expected, caller-facing refusal. Sent to the originating connection only."""

    event = 'error'

    def __init__(self, code: str, message: str = ''):
        super().__init__(message or f"{self.__class__.__name__}: {code}")
        self.code = code


class RoomExists(RoomRejection):
    event = 'roomExists'


class RoomNotFound(RoomRejection):
    event = 'gameDoesNotExist'


class NameTaken(RoomRejection):
    event = 'usernameTaken'


class RoomFull(RoomRejection):
    event = 'roomFull'
