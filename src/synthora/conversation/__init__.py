"""
Conversation sessions and the turn-by-turn state machine.
"""

from .machine import WELCOME_MESSAGE, ConversationStateMachine, render_error
from .store import SessionStore

__all__ = ["WELCOME_MESSAGE", "ConversationStateMachine", "render_error", "SessionStore"]
