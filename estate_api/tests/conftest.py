import pytest
from fastapi.testclient import TestClient

# env defaults + in-memory engine must exist before the app is imported
from estate_api.tests.support import TestingSessionLocal, engine

from estate_api.core.rate_limit import get_bid_limiter
from estate_api.db.base import Base
from estate_api.db.session import get_db
from estate_api.main import create_app


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    get_bid_limiter().reset()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    app = create_app()

    def override_get_db():
        s = TestingSessionLocal()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
