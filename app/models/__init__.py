from .calendar import CalendarRecord
from .message_log import MessageLog
from .user_profile import UserProfileRecord

__all__ = [
    "CalendarRecord",
    "MessageLog",
    "UserProfileRecord",
]
