import asyncio

from app.schemas.payments import OrderHandle
from app.utils.security import create_access_token

PASSWORD = "secret123"


def lesson_ids_of(course):
    return [lesson["lessonId"] for section in course["curriculum"] for lesson in section["lessons"]]


def auth_headers(user, role):
    return {"Authorization": f"Bearer {create_access_token(str(user['_id']), role)}"}


class FakeGateway:
    def __init__(self):
        self.calls = []

    async def create_order(self, amount, currency, receipt):
        self.calls.append({"amount": amount, "currency": currency, "receipt": receipt})
        return OrderHandle(id=f"order_{len(self.calls):04d}", amount=amount, currency=currency)


class FakeRenderer:
    def __init__(self, fail=False):
        self.fail = fail
        self.rendered = []

    async def render(self, data):
        if self.fail:
            raise RuntimeError("renderer offline")
        self.rendered.append(data)
        return b"%PDF-1.4 fake"


class FakeStorage:
    """Yields to the loop on save so concurrent issuers interleave."""

    def __init__(self):
        self.saved = {}
        self.deleted = []

    async def save(self, public_id, content):
        await asyncio.sleep(0)
        self.saved[public_id] = content
        return {"url": f"/media/certificates/{public_id}.pdf", "public_id": public_id}

    async def delete(self, public_id):
        self.saved.pop(public_id, None)
        self.deleted.append(public_id)
