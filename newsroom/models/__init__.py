from newsroom.models.article import Article
from newsroom.models.category import Category
from newsroom.models.user import User, UserSession

__all__ = ["Article", "Category", "User", "UserSession"]
