"""FriendBeats - recent Spotify playlist activity for any public user."""

__version__ = "1.0.0"
