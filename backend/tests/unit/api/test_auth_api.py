"""
Unit Tests for OTP Authentication Endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker

fake = Faker()


class TestSendOtp:
    """Test POST /api/auth/send-otp"""

    @pytest.mark.asyncio
    async def test_send_otp_success(self, client: AsyncClient, email_service):
        email = fake.email()

        response = await client.post('/api/auth/send-otp', json={'email': email})

        assert response.status_code == 200
        assert response.json() == {'message': 'OTP sent successfully', 'expiresIn': 300}
        assert email_service.last_code_for(email.lower()) is not None

    @pytest.mark.asyncio
    async def test_send_otp_invalid_email(self, client: AsyncClient):
        response = await client.post('/api/auth/send-otp', json={'email': 'not-an-email'})

        assert response.status_code == 400
        assert response.json()['message'] == 'Please use a valid email address'

    @pytest.mark.asyncio
    async def test_send_otp_delivery_failure(self, client: AsyncClient, email_service):
        email_service.deliver = False

        response = await client.post('/api/auth/send-otp', json={'email': fake.email()})

        assert response.status_code == 500
        assert response.json()['message'] == 'Failed to send OTP. Please try again.'


class TestVerifyOtp:
    """Test POST /api/auth/verify-otp"""

    @pytest.mark.asyncio
    async def test_login_round_trip(self, client: AsyncClient, email_service, identity):
        email = fake.email().lower()
        await client.post('/api/auth/send-otp', json={'email': email})
        code = email_service.last_code_for(email)

        response = await client.post('/api/auth/verify-otp', json={'email': email, 'otp': code})

        assert response.status_code == 200
        data = response.json()
        assert data['message'] == 'OTP verified successfully'
        assert data['token'] == f"custom-token-{identity.users[email]}"

        replay = await client.post('/api/auth/verify-otp', json={'email': email, 'otp': code})
        assert replay.status_code == 400
        assert replay.json()['message'] == 'OTP not found or expired'

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient):
        response = await client.post('/api/auth/verify-otp', json={'email': fake.email()})

        assert response.status_code == 400
        assert response.json()['message'] == 'Email and OTP are required'

    @pytest.mark.asyncio
    async def test_wrong_code_then_lockout(self, client: AsyncClient, email_service):
        email = fake.email().lower()
        await client.post('/api/auth/send-otp', json={'email': email})
        code = email_service.last_code_for(email)
        wrong = '000000' if code != '000000' else '999999'

        for _ in range(3):
            response = await client.post('/api/auth/verify-otp', json={'email': email, 'otp': wrong})
            assert response.status_code == 400
            assert response.json()['message'] == 'Invalid OTP'

        response = await client.post('/api/auth/verify-otp', json={'email': email, 'otp': code})
        assert response.status_code == 400
        assert response.json()['code'] == 'TOO_MANY_ATTEMPTS'

    @pytest.mark.asyncio
    async def test_expired_code(self, client: AsyncClient, email_service, clock):
        email = fake.email().lower()
        await client.post('/api/auth/send-otp', json={'email': email})
        clock.advance(minutes=5, seconds=30)

        response = await client.post(
            '/api/auth/verify-otp',
            json={'email': email, 'otp': email_service.last_code_for(email)}
        )

        assert response.status_code == 400
        assert response.json()['message'] == 'OTP has expired'

    @pytest.mark.asyncio
    async def test_no_bearer_token_needed(self, client: AsyncClient):
        response = await client.post('/api/auth/verify-otp', json={'email': 'x@ceg.edu', 'otp': '123456'})
        assert response.status_code != 401
