# Repositories package

from .base_repository import BaseRepository
from .interaction_repository import InteractionRepository
from .photo_repository import PhotoRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "InteractionRepository",
    "PhotoRepository",
    "UserRepository",
]
