"""Test doubles and token helpers shared by the service tests."""

import uuid

from jose import jwt

from marketplace.config import get_settings


class FakeS3Client:
    """Records put_object calls in place of a boto3 S3 client."""

    def __init__(self):
        self.objects: dict[tuple[str, str], dict] = {}

    def put_object(self, **kwargs):
        self.objects[(kwargs["Bucket"], kwargs["Key"])] = kwargs
        return {"ETag": '"fake"'}


def make_token(user_id: uuid.UUID, admin: bool = False, **claims) -> str:
    settings = get_settings()
    payload = {
        "sub": str(user_id),
        "aud": settings.jwt_audience,
        "email": f"{user_id.hex[:8]}@example.com",
        "app_metadata": {"role": "admin"} if admin else {},
    }
    payload.update(claims)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: uuid.UUID, admin: bool = False) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, admin=admin)}"}


def payment_event(event_type: str, intent_id: str, metadata: dict) -> dict:
    """Provider-shaped webhook body as FakePaymentGateway.parse_webhook reads it."""
    return {
        "type": event_type,
        "data": {"object": {"id": intent_id, "metadata": metadata}},
    }
