from .flow import ConversationSession, FormatSelection, InvalidTransitionError, Reply, SessionState

__all__ = ["ConversationSession", "FormatSelection", "InvalidTransitionError", "Reply", "SessionState"]
