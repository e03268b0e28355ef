from .content import Content, ContentMeta
from .term import Term, TermMeta

__all__ = [
    "Content",
    "ContentMeta",
    "Term",
    "TermMeta",
]
