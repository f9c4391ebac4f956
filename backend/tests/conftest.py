"""
CEG Connect - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Dict
import pytest
from httpx import AsyncClient, ASGITransport
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['OTP_STORE_BACKEND'] = 'memory'
os.environ['FIREBASE_PROJECT_ID'] = 'ceg-connect-test'

from app.main import app
from app.api.deps import (
    get_document_store,
    get_feed_service,
    get_identity_provider,
    get_otp_service,
    get_otp_store,
)
from app.services.feed_service import FeedService
from app.services.otp_service import OtpService
from app.services.otp_store import InMemoryOtpStore
from tests.mocks.fake_clock import FakeClock
from tests.mocks.fake_document_store import FakeDocumentStore
from tests.mocks.fake_identity import FakeEmailService, FakeIdentityProvider

fake = Faker()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def document_store(clock: FakeClock) -> FakeDocumentStore:
    return FakeDocumentStore(clock)


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def otp_store(clock: FakeClock) -> InMemoryOtpStore:
    return InMemoryOtpStore(clock=clock)


@pytest.fixture
def otp_service(otp_store, identity, email_service, clock) -> OtpService:
    return OtpService(otp_store, identity, email_service, clock=clock)


@pytest.fixture
def feed_service(document_store, clock) -> FeedService:
    return FeedService(document_store, clock=clock)


@pytest.fixture
async def client(document_store, identity, otp_store, otp_service, feed_service) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with the external collaborators replaced by fakes"""
    app.dependency_overrides[get_document_store] = lambda: document_store
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_otp_store] = lambda: otp_store
    app.dependency_overrides[get_otp_service] = lambda: otp_service
    app.dependency_overrides[get_feed_service] = lambda: feed_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


def _make_user(identity: FakeIdentityProvider) -> Dict[str, str]:
    uid = fake.uuid4()
    email = fake.email()
    name = fake.name()
    token = identity.issue_id_token(uid, email=email, name=name)
    return {
        'uid': uid,
        'email': email,
        'name': name,
        'headers': {'Authorization': f'Bearer {token}'},
    }


@pytest.fixture
def test_user(identity: FakeIdentityProvider) -> Dict[str, str]:
    """A signed-in student"""
    return _make_user(identity)


@pytest.fixture
def other_user(identity: FakeIdentityProvider) -> Dict[str, str]:
    """A second signed-in student"""
    return _make_user(identity)


@pytest.fixture
def auth_headers(test_user: Dict[str, str]) -> dict:
    """Generate authentication headers for test user"""
    return test_user['headers']


@pytest.fixture
def other_auth_headers(other_user: Dict[str, str]) -> dict:
    return other_user['headers']
