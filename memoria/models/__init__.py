from memoria.models.profile import Profile
from memoria.models.friendship import Friendship

__all__ = ["Profile", "Friendship"]
