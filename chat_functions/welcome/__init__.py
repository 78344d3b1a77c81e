from .service import add_welcome_message, build_welcome_message, welcome_new_user

__all__ = ["add_welcome_message", "build_welcome_message", "welcome_new_user"]
