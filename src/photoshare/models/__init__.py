from photoshare.models.db import Base
from photoshare.models.interaction import Comment, Like, Rating
from photoshare.models.photo import Photo, PhotoStatus, PhotoTag
from photoshare.models.user import User, UserRole

__all__ = ["Base", "Comment", "Like", "Photo", "PhotoStatus", "PhotoTag", "Rating", "User", "UserRole"]
