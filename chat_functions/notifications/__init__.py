from .service import build_notification_payload, cleanup_tokens, send_notifications, truncate_body

__all__ = ["build_notification_payload", "cleanup_tokens", "send_notifications", "truncate_body"]
