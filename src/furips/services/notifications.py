"""Webhook notification when a shipment folder has been filled."""

import logging

import httpx

logger = logging.getLogger(__name__)


async def notify_shipment_uploaded(
    webhook_url: str,
    storage_location: str,
    folder_path: str,
    timeout: int = 10,
) -> bool:
    """
    Tell the downstream workflow that a shipment folder is ready.

    Failures are logged but never propagate: the shipment is already stored
    and recorded, and the notification is not part of that contract.

    Args:
        webhook_url: Endpoint to POST to; empty disables notification
        storage_location: Bucket name or local storage root
        folder_path: Shipment folder inside the storage location
        timeout: Request timeout in seconds

    Returns:
        True if the webhook acknowledged the notification
    """
    if not webhook_url:
        return False

    payload = {"bucket": storage_location, "file_path": folder_path}

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(webhook_url, json=payload)
            response.raise_for_status()

        logger.info(
            "Shipment webhook notified",
            extra={"folder_path": folder_path},
        )
        return True

    except httpx.TimeoutException:
        logger.warning(
            "Shipment webhook timeout (non-critical)",
            extra={"folder_path": folder_path, "timeout": timeout},
        )
    except httpx.HTTPError as e:
        logger.warning(
            "Shipment webhook failed (non-critical)",
            extra={
                "folder_path": folder_path,
                "error": str(e),
                "status_code": getattr(getattr(e, "response", None), "status_code", None),
            },
        )
    return False
