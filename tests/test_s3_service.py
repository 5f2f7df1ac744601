"""
Tests for AsyncS3Client

Storage calls are mocked; presigning runs the real botocore signer, which is
a local computation.
"""

import io
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlsplit

import pytest

from photoshare.minio_utils import MAX_PRESIGN_SECONDS, S3Settings
from photoshare.s3_service import AsyncS3Client, has_access_token


@pytest.fixture
def mock_settings():
    """Create mock S3Settings for testing."""
    settings = MagicMock()
    settings.access_key = "test-access-key"
    settings.secret_key = "test-secret-key"
    settings.bucket = "test-bucket"
    settings.region = "us-east-1"
    settings.endpoint = "localhost:9000"
    settings.use_ssl = False
    settings.signature_version = "s3v4"
    settings.presigned_url_expires_in = 3600
    return settings


@pytest.fixture
def s3_client(mock_settings):
    with patch("photoshare.s3_service.S3Settings", return_value=mock_settings):
        return AsyncS3Client()


def _mock_s3_context(s3_client):
    mock_s3 = AsyncMock()
    mock_context = AsyncMock()
    mock_context.__aenter__.return_value = mock_s3
    mock_context.__aexit__.return_value = None
    s3_client.session.client = MagicMock(return_value=mock_context)
    return mock_s3


class TestAsyncS3ClientInit:
    def test_client_initialization(self, s3_client):
        assert s3_client.settings.bucket == "test-bucket"
        assert s3_client._endpoint_url == "http://localhost:9000"

    def test_session_property_creates_session_once(self, s3_client):
        assert s3_client.session is s3_client.session

    def test_ssl_endpoint(self, mock_settings):
        mock_settings.use_ssl = True
        with patch("photoshare.s3_service.S3Settings", return_value=mock_settings):
            assert AsyncS3Client()._endpoint_url == "https://localhost:9000"

    def test_object_url(self, s3_client):
        assert s3_client.object_url("abc.jpg") == "http://localhost:9000/test-bucket/abc.jpg"


class TestAsyncS3ClientStorage:
    @pytest.mark.asyncio
    async def test_upload_fileobj_with_bytes(self, s3_client):
        mock_s3 = _mock_s3_context(s3_client)

        result = await s3_client.upload_fileobj(b"data", "k.jpg", content_type="image/jpeg")

        assert result == "http://localhost:9000/test-bucket/k.jpg"
        args, kwargs = mock_s3.upload_fileobj.call_args
        assert isinstance(args[0], io.BytesIO)
        assert args[1:] == ("test-bucket", "k.jpg")
        assert kwargs["ExtraArgs"] == {"ContentType": "image/jpeg"}

    @pytest.mark.asyncio
    async def test_upload_failure_propagates(self, s3_client):
        mock_s3 = _mock_s3_context(s3_client)
        mock_s3.upload_fileobj.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await s3_client.upload_fileobj(b"data", "k.jpg")

    @pytest.mark.asyncio
    async def test_delete_file(self, s3_client):
        mock_s3 = _mock_s3_context(s3_client)
        await s3_client.delete_file("k.jpg")
        mock_s3.delete_object.assert_called_once_with(Bucket="test-bucket", Key="k.jpg")

    @pytest.mark.asyncio
    async def test_check_health(self, s3_client):
        mock_s3 = _mock_s3_context(s3_client)
        assert await s3_client.check_health() is True

        mock_s3.head_bucket.side_effect = RuntimeError("unreachable")
        assert await s3_client.check_health() is False

    @pytest.mark.asyncio
    async def test_close_resets_session(self, s3_client):
        _ = s3_client.session
        await s3_client.close()
        assert s3_client._session is None


class TestPresigning:
    def test_presigned_url_is_signed_and_uses_configured_expiry(self, s3_client):
        url = s3_client.generate_presigned_url("photo.jpg")
        query = parse_qs(urlsplit(url).query)

        assert urlsplit(url).path == "/test-bucket/photo.jpg"
        assert query["X-Amz-Expires"] == ["3600"]
        assert "X-Amz-Signature" in query
        assert has_access_token(url)

    def test_explicit_expiry(self, s3_client):
        url = s3_client.generate_presigned_url("photo.jpg", expires_in=60)
        assert parse_qs(urlsplit(url).query)["X-Amz-Expires"] == ["60"]

    @pytest.mark.asyncio
    async def test_batch_skips_failures(self, s3_client):
        original = s3_client.generate_presigned_url

        def flaky(key, expires_in=None):
            if key == "bad.jpg":
                raise RuntimeError("cannot sign")
            return original(key, expires_in)

        s3_client.generate_presigned_url = flaky
        urls = await s3_client.generate_presigned_urls_batch(["a.jpg", "bad.jpg", "a.jpg"])

        assert set(urls) == {"a.jpg"}

    def test_default_expiry_is_sigv4_maximum(self):
        assert S3Settings().presigned_url_expires_in == MAX_PRESIGN_SECONDS == 604800


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://localhost:9000/b/k.jpg", False),
        ("http://localhost:9000/b/k.jpg?X-Amz-Signature=abc", True),
        ("https://acct.blob.core.windows.net/c/k.jpg?sv=2021&sig=abc", True),
        ("https://cdn.example.com/k.jpg?Signature=abc&Expires=1", True),
        ("https://cdn.example.com/k.jpg?size=large", False),
        ("", False),
        (None, False),
    ],
)
def test_has_access_token(url, expected):
    assert has_access_token(url) is expected
