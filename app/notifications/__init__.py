"""
Notifications app: bilingual push/email delivery with an audit trail.

This app provides:
- Notification model, one row per dispatched notification
- A bilingual (en/ar) message catalogue
- NotificationDispatcher: push via Firebase Cloud Messaging, email fallback
- REST API for listing notifications and marking them read

Usage:
    from notifications.dependencies import get_notification_dispatcher
    from notifications.messages import MessageType

    get_notification_dispatcher().notify(
        recipient=student,
        message_type=MessageType.PAYMENT_RECEIVED,
        context={"amount": "100.00", "subject": "Math"},
    )
"""
