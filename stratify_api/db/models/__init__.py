# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.session import UserSession
from .auth.otp import OTPRequest
from .conversations.conversation import Conversation

__all__ = [
    "User",
    "UserSession",
    "OTPRequest",
    "Conversation",
]
