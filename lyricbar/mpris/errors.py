class MprisError(RuntimeError):
    """Base class for player lookup and D-Bus failures."""


class NoPlayersFound(MprisError):
    pass


class PlayerUnavailable(MprisError):
    pass
