"""Models package."""

from .user import User
from .category import Category
from .video import Video
