from .user import Base, User  # noqa: F401  → registers the table with the metadata
from .session import Session  # noqa: F401
from .post_read import PostRead  # noqa: F401
