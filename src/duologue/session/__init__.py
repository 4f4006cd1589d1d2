"""Client-side session control for duologue."""

from .controller import ChatClient, SessionController
from .models import PendingTurn, SessionState

__all__ = ["ChatClient", "PendingTurn", "SessionController", "SessionState"]
