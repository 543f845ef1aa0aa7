from duellog.models.db.session import Session
from duellog.utils.errors import DuplicateDeckError


def add_session_deck(session: Session, deck_name: str) -> Session:
    if deck_name in session.decks:
        raise DuplicateDeckError(session.id, deck_name)
    return session.model_copy(update={"decks": [*session.decks, deck_name]})


def remove_session_deck(session: Session, deck_name: str) -> Session:
    """
    Drop a deck name from the session's deck list. Removing a name that is not in the
    list leaves the session as it was. Matches already played with the deck keep it.
    """
    return session.model_copy(
        update={"decks": [deck for deck in session.decks if deck != deck_name]}
    )
