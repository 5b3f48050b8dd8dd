"""Tests for the shipment webhook notification."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from furips.services.notifications import notify_shipment_uploaded


@pytest.fixture
def mock_http_client():
    client = AsyncMock()
    response = MagicMock()
    response.raise_for_status = MagicMock()
    client.post.return_value = response
    with patch("furips.services.notifications.httpx.AsyncClient") as mock_cls:
        mock_cls.return_value.__aenter__.return_value = client
        yield client


@pytest.mark.asyncio
async def test_notify_posts_bucket_and_folder(mock_http_client):
    notified = await notify_shipment_uploaded(
        "https://hooks.example/furips", "furips-envios", "Clinica_Norte/ENV-001"
    )

    assert notified is True
    mock_http_client.post.assert_called_once_with(
        "https://hooks.example/furips",
        json={"bucket": "furips-envios", "file_path": "Clinica_Norte/ENV-001"},
    )


@pytest.mark.asyncio
async def test_notify_disabled_without_url(mock_http_client):
    assert await notify_shipment_uploaded("", "bucket", "folder") is False
    mock_http_client.post.assert_not_called()


@pytest.mark.asyncio
async def test_notify_timeout_is_not_fatal(mock_http_client):
    mock_http_client.post.side_effect = httpx.TimeoutException("timed out")

    assert await notify_shipment_uploaded("https://hooks.example", "bucket", "folder") is False


@pytest.mark.asyncio
async def test_notify_http_error_is_not_fatal(mock_http_client):
    response = mock_http_client.post.return_value
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "server error", request=MagicMock(), response=MagicMock(status_code=502)
    )

    assert await notify_shipment_uploaded("https://hooks.example", "bucket", "folder") is False
