from newsroom.editor.client import ApiError, ArticlesClient
from newsroom.editor.drafts import DraftStore, FileStorage, draft_key
from newsroom.editor.fields import EditorFields
from newsroom.editor.session import ArticleEditor

__all__ = [
    "ApiError",
    "ArticleEditor",
    "ArticlesClient",
    "DraftStore",
    "EditorFields",
    "FileStorage",
    "draft_key",
]
