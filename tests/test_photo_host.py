import httpx
import pytest

from app.utils.photo_host import USER_AGENT, PhotoHostingClient

UPLOAD_URL = "https://photos.example.com/upload.php"
PUBLIC_BASE = "https://photos.example.com/uploads"


def make_client(handler, **kwargs):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PhotoHostingClient(UPLOAD_URL, PUBLIC_BASE, http_client=http_client, **kwargs)


@pytest.mark.asyncio
async def test_upload_returns_host_url():
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(200, json={"url": "https://cdn.example.com/a1.jpg"})

    result = await make_client(handler).upload(b"jpeg-bytes", "front.jpg", "image/jpeg")

    assert result.success is True
    assert result.hosted_url == "https://cdn.example.com/a1.jpg"
    assert result.original_filename == "front.jpg"

    request = seen["request"]
    body = request.read()
    assert request.method == "POST"
    assert str(request.url) == UPLOAD_URL
    assert request.headers["User-Agent"] == USER_AGENT
    assert b'name="photo"; filename="front.jpg"' in body
    assert b"jpeg-bytes" in body


@pytest.mark.asyncio
async def test_bare_filename_builds_public_url():
    def handler(request):
        return httpx.Response(200, json={"filename": "item 7.jpg"})

    client = make_client(handler)
    result = await client.upload(b"jpeg-bytes", "item 7.jpg")

    assert result.success is True
    assert result.hosted_url == f"{PUBLIC_BASE}/item%207.jpg"
    assert result.hosted_url == client.hosted_url_for("item 7.jpg")


@pytest.mark.asyncio
async def test_server_error_is_captured():
    def handler(request):
        return httpx.Response(500, text="boom")

    result = await make_client(handler).upload(b"jpeg-bytes", "front.jpg")

    assert result.success is False
    assert result.hosted_url is None
    assert "500" in result.error


@pytest.mark.asyncio
async def test_timeout_is_captured():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = await make_client(handler, timeout=5).upload(b"jpeg-bytes", "front.jpg")

    assert result.success is False
    assert "timed out" in result.error


@pytest.mark.asyncio
async def test_connection_error_is_captured():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await make_client(handler).upload(b"jpeg-bytes", "front.jpg")

    assert result.success is False
    assert "connection refused" in result.error


@pytest.mark.asyncio
async def test_invalid_json_is_captured():
    def handler(request):
        return httpx.Response(200, text="<html>ok</html>")

    result = await make_client(handler).upload(b"jpeg-bytes", "front.jpg")

    assert result.success is False
    assert "invalid JSON" in result.error


@pytest.mark.asyncio
async def test_response_without_url_or_filename_is_captured():
    def handler(request):
        return httpx.Response(200, json={"status": "ok"})

    result = await make_client(handler).upload(b"jpeg-bytes", "front.jpg")

    assert result.success is False
    assert "neither url nor filename" in result.error


@pytest.mark.asyncio
async def test_oversized_photo_is_rejected_before_sending():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"url": "https://cdn.example.com/a1.jpg"})

    result = await make_client(handler, max_bytes=4).upload(b"12345", "big.jpg")

    assert result.success is False
    assert "limit" in result.error
    assert calls == []


@pytest.mark.asyncio
async def test_empty_photo_is_rejected():
    result = await make_client(lambda request: httpx.Response(200, json={})).upload(b"", "empty.jpg")
    assert result.success is False


@pytest.mark.asyncio
async def test_missing_upload_url_is_reported():
    client = PhotoHostingClient(None, PUBLIC_BASE)
    result = await client.upload(b"jpeg-bytes", "front.jpg")

    assert result.success is False
    assert "EXTERNAL_PHOTO_HOST_URL" in result.error


def test_from_settings(settings):
    client = PhotoHostingClient.from_settings(settings)

    assert client.upload_url == "https://photos.example.com/upload.php"
    assert client.public_base_url == "https://photos.example.com/uploads"
    assert client.timeout == 120
    assert client.max_bytes == 10 * 1024 * 1024
