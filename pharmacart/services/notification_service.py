# pharmacart/services/notification_service.py
from pharmacart.celery_worker import celery_app
from pharmacart.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order confirmation after a successful checkout.
    Fire-and-forget through Celery, the checkout never waits for it.
    """

    @staticmethod
    def send_order_confirmation(order_id: str, item_count: int, total: str):
        send_order_confirmation_task.delay(order_id, item_count, total)


@celery_app.task(name="pharmacart.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(order_id: str, item_count: int, total: str):
    # real delivery (email/push) belongs to the backend, the worker only records it
    logger.info(f"[NOTIFICATION] Order {order_id} placed: {item_count} items, total {total}")
    return {"order_id": order_id, "status": "sent"}
