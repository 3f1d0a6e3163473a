from .chat_screen import ChatScreen

__all__ = ["ChatScreen"]
