"""
StackIt Backend — ORM Models
==============================

Importing this package registers every table with `Base.metadata`.

Relationships:
    User 1───* Question *───* Tag        (via question_tags)
    User 1───* Notification              (receiver)
"""

from stackit.models.notification import Notification
from stackit.models.question import Question, question_tags
from stackit.models.tag import Tag
from stackit.models.user import User, UserRole

__all__ = [
    "Notification",
    "Question",
    "Tag",
    "User",
    "UserRole",
    "question_tags",
]
