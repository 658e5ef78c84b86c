# broadcast_service/utils/broadcast_notifications.py
"""
Notifications for the broadcast flow.

In-app messages go over Redis pub/sub and domain events go to Kafka. Both
are fire-and-forget: they run after the database write has committed and a
failure is logged, never raised back into the request.
"""
import json
import logging
from typing import Optional, List

from broadcast_service.core.config import settings
from broadcast_service.db.redis import redis_client
from broadcast_service.utils.time import utcnow

logger = logging.getLogger(__name__)

EVENT_BROADCAST_CREATED = "broadcast.created"
EVENT_BROADCAST_CANCELLED = "broadcast.cancelled"
EVENT_PRICING_SUBMITTED = "pricing.submitted"


def _publish_inapp(channel: str, payload: dict) -> bool:
    """Publish in-app notification via Redis pub/sub."""
    try:
        redis_client.publish(channel, json.dumps(payload, default=str))
        return True
    except Exception as e:
        logger.error(f"Failed to publish in-app notification to {channel}: {e}", exc_info=True)
        return False


def publish_event(producer, event_type: str, key: str, data: dict) -> bool:
    """Send a domain event to the broadcast events topic."""
    if producer is None:
        logger.debug(f"No Kafka producer, skipping {event_type} for {key}")
        return False
    try:
        producer.send(
            settings.BROADCAST_EVENTS_TOPIC,
            key=key.encode("utf-8"),
            value={"type": event_type, "occurredAt": utcnow().isoformat(), **data},
        )
        return True
    except Exception as e:
        logger.error(f"Failed to publish {event_type} for {key}: {e}", exc_info=True)
        return False


def customer_channel(customer_id: str) -> str:
    return f"user:{customer_id}:notifications"


def seller_channel(seller_id: str) -> str:
    return f"seller:{seller_id}:notifications"


# ── Flow notifications ────────────────────────────────────────────────

def notify_broadcast_created(
    producer,
    *,
    broadcast_id: str,
    customer_id: str,
    requests: List[dict],
    pricing_deadline,
) -> None:
    """Tell every selected seller a new request is waiting for a quote."""
    for rq in requests:
        _publish_inapp(
            seller_channel(rq["seller_id"]),
            {
                "type": "PRICING_REQUEST_RECEIVED",
                "broadcastId": broadcast_id,
                "requestId": rq["id"],
                "pricingExpiresAt": pricing_deadline,
            },
        )
    publish_event(
        producer,
        EVENT_BROADCAST_CREATED,
        broadcast_id,
        {
            "broadcastId": broadcast_id,
            "customerId": customer_id,
            "sellerIds": [rq["seller_id"] for rq in requests],
            "requestIds": [rq["id"] for rq in requests],
        },
    )
    logger.info(f"Notified {len(requests)} sellers of broadcast {broadcast_id}")


def notify_pricing_submitted(
    producer,
    *,
    broadcast_id: str,
    customer_id: str,
    seller_id: str,
    request_id: str,
    order_id: str,
    order_number: str,
    total,
    seller_name: Optional[str] = None,
) -> None:
    """Tell the customer a seller has priced their order."""
    _publish_inapp(
        customer_channel(customer_id),
        {
            "type": "PRICING_SUBMITTED",
            "broadcastId": broadcast_id,
            "requestId": request_id,
            "orderId": order_id,
            "orderNumber": order_number,
            "sellerId": seller_id,
            "sellerName": seller_name,
            "total": float(total),
        },
    )
    publish_event(
        producer,
        EVENT_PRICING_SUBMITTED,
        broadcast_id,
        {
            "broadcastId": broadcast_id,
            "customerId": customer_id,
            "sellerId": seller_id,
            "requestId": request_id,
            "orderId": order_id,
            "orderNumber": order_number,
            "total": str(total),
        },
    )


def notify_broadcast_cancelled(
    producer,
    *,
    broadcast_id: str,
    customer_id: str,
    seller_ids: List[str],
) -> None:
    for seller_id in seller_ids:
        _publish_inapp(
            seller_channel(seller_id),
            {"type": "BROADCAST_CANCELLED", "broadcastId": broadcast_id},
        )
    publish_event(
        producer,
        EVENT_BROADCAST_CANCELLED,
        broadcast_id,
        {"broadcastId": broadcast_id, "customerId": customer_id},
    )
