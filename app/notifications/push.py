"""
Firebase Cloud Messaging push sender.

The Firebase app is initialized once per sender from a service-account
file. When no credentials file is configured the sender is disabled and
every send raises a permanent PushDeliveryError, so the dispatcher falls
back to email.

Usage:
    from notifications.push import FCMPushSender

    sender = FCMPushSender(credentials_file="/secrets/fcm.json")
    message_id = sender.send(token, "Title", "Body", {"lesson_id": "..."})
"""

from __future__ import annotations

import logging
import os
import time

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "tutoring-push"

# Error classification
PERMANENT_ERRORS = {
    "unregistered",
    "invalid_token",
    "push_disabled",
}
TRANSIENT_ERRORS = {
    "provider_unavailable",
    "connection_error",
}


class PushDeliveryError(Exception):
    """Push delivery failure with a code and permanent/transient flag."""

    def __init__(self, message: str, code: str, is_permanent: bool = False):
        super().__init__(message)
        self.code = code
        self.is_permanent = is_permanent


class FCMPushSender:
    """Sends single-device push messages through firebase-admin."""

    def __init__(self, credentials_file: str | None = None):
        self.credentials_file = credentials_file
        self._app: firebase_admin.App | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.credentials_file) and os.path.exists(self.credentials_file)

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
            except ValueError:
                cred = credentials.Certificate(self.credentials_file)
                self._app = firebase_admin.initialize_app(cred, name=FIREBASE_APP_NAME)
        return self._app

    def send(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> str:
        """
        Send one push message and return the FCM message id.

        Raises:
            PushDeliveryError: On any delivery failure
        """
        if not self.enabled:
            raise PushDeliveryError("Push delivery is not configured", "push_disabled", True)

        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data={key: str(value) for key, value in (data or {}).items()},
            token=token,
        )

        start = time.time()
        try:
            message_id = messaging.send(message, app=self._get_app())
        except messaging.UnregisteredError as e:
            raise PushDeliveryError(str(e), "unregistered", is_permanent=True) from e
        except firebase_exceptions.InvalidArgumentError as e:
            raise PushDeliveryError(str(e), "invalid_token", is_permanent=True) from e
        except firebase_exceptions.FirebaseError as e:
            raise PushDeliveryError(str(e), "provider_unavailable") from e
        except (OSError, ValueError) as e:
            raise PushDeliveryError(str(e), "connection_error") from e

        duration_ms = (time.time() - start) * 1000
        logger.info(
            f"FCM message sent in {duration_ms:.0f}ms",
            extra={"message_id": message_id, "duration_ms": round(duration_ms)},
        )
        return message_id
