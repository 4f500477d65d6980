"""Tests for JWT helpers and the request timing middleware."""
import time
from datetime import timedelta

from hometrace.security_utils import create_access_token, create_jwt_token, verify_jwt_token


class TestJwt:
    def test_expiry_is_in_the_future(self):
        payload = verify_jwt_token(create_access_token(5, "agent"))

        assert payload["sub"] == "5"
        assert payload["role"] == "agent"
        assert payload["exp"] > time.time()

    def test_expired_token_rejected(self):
        token = create_jwt_token({"sub": "5"}, expires_delta=timedelta(minutes=-1))
        assert verify_jwt_token(token) is None


def test_responses_carry_process_time(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers["X-Process-Time"].endswith("ms")
