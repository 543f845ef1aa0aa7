from typing import NewType

UserId = NewType("UserId", int)
SessionId = NewType("SessionId", int)
MatchId = NewType("MatchId", str)
