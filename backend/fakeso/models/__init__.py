from fakeso.models.question import Answer, Comment, Question, Tag, question_tags
from fakeso.models.user import Notification, User

__all__ = [
    "Answer",
    "Comment",
    "Notification",
    "Question",
    "Tag",
    "User",
    "question_tags",
]
