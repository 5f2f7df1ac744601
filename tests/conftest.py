import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine.base import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session
from sqlalchemy.pool import StaticPool

# Settings are read at import time, so the environment must be ready first
os.environ.update(
    {
        "JWT_SECRET_KEY": "supersecretkey",
        "POSTGRES_URL": "sqlite://",
        "S3_ENDPOINT": "localhost:9000",
        "MINIO_ROOT_USER": "minioadmin",
        "MINIO_ROOT_PASSWORD": "minioadmin",
        "S3_BUCKET": "photoshare-test",
    }
)

from photoshare.s3_service import AsyncS3Client  # noqa: E402
from tests.helpers import register_and_login  # noqa: E402


class FakeS3Client(AsyncS3Client):
    """Keeps objects in memory. Presigning is the real botocore code, which runs locally."""

    def __init__(self):
        super().__init__()
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str | None] = {}
        self.healthy = True

    async def upload_fileobj(self, file_obj, key, content_type=None, metadata=None) -> str:
        data = file_obj if isinstance(file_obj, bytes) else file_obj.read()
        self.objects[key] = data
        self.content_types[key] = content_type
        return self.object_url(key)

    async def delete_file(self, key: str) -> None:
        self.objects.pop(key, None)

    async def check_health(self) -> bool:
        return self.healthy


@pytest.fixture(scope="function")
def engine() -> Generator[Engine]:
    """In-memory SQLite shared by every thread of one test."""
    from photoshare.models import Base

    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine: Engine) -> Generator[Session]:
    session = sessionmaker(bind=engine)()
    yield session
    session.close()


@pytest.fixture(scope="function")
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture(scope="function")
def client(db_session: Session, fake_s3: FakeS3Client) -> Generator[TestClient]:
    from photoshare.dependencies import get_s3_client
    from photoshare.main import app
    from photoshare.models.db import get_db

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_s3_client] = lambda: fake_s3

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def creator_token(client: TestClient) -> str:
    return register_and_login(client, "Ansel Adams", "ansel@example.com", "password123", role="creator")


@pytest.fixture(scope="function")
def consumer_token(client: TestClient) -> str:
    return register_and_login(client, "Vivian Maier", "vivian@example.com", "password123", role="consumer")


@pytest.fixture(scope="function")
def creator_headers(creator_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {creator_token}"}


@pytest.fixture(scope="function")
def consumer_headers(consumer_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {consumer_token}"}


@pytest.fixture(scope="function")
def invalid_auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer invalid_token"}


@pytest.fixture(scope="function")
def expired_auth_headers() -> dict[str, str]:
    """Access token that expired a day ago."""
    import uuid
    from datetime import UTC, datetime, timedelta

    import jwt

    from photoshare.auth_utils import authsettings

    payload = {"sub": str(uuid.uuid4()), "exp": datetime.now(UTC) - timedelta(days=1), "type": "access"}
    token = jwt.encode(payload, authsettings.jwt_secret_key, algorithm=authsettings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}
