from duellog.utils.id_types import MatchId, SessionId


class LedgerError(Exception):
    """Base class of every failure the points ledger reports to its caller."""


class MatchValidationError(LedgerError):
    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class NotFoundError(LedgerError):
    pass


class SessionNotFound(NotFoundError):
    def __init__(self, session_id: SessionId) -> None:
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class MatchNotFound(NotFoundError):
    def __init__(self, locator: MatchId | int) -> None:
        super().__init__(f"Match {locator} not found")
        self.locator = locator


class SessionVersionConflict(LedgerError):
    def __init__(self, session_id: SessionId, expected_version: int) -> None:
        super().__init__(
            f"Session {session_id} was modified concurrently (expected version {expected_version})"
        )
        self.session_id = session_id
        self.expected_version = expected_version


class DuplicateDeckError(LedgerError):
    def __init__(self, session_id: SessionId, deck_name: str) -> None:
        super().__init__(f"Deck {deck_name} already exists in session {session_id}")
        self.session_id = session_id
        self.deck_name = deck_name
