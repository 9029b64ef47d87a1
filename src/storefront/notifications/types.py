"""Notification kinds and the channels they go out on."""

from enum import Enum


class NotificationType(Enum):
    ORDER_COMPLETED = "order_completed"
    FREE_ORDER_COMPLETED = "free_order_completed"
    CUSTOM_WORK_PENDING = "custom_work_pending"
    ORDER_CANCELLED = "order_cancelled"
    NEW_PAID_ORDER = "new_paid_order"


class NotificationChannel(Enum):
    EMAIL = "email"
    CHAT = "chat"
