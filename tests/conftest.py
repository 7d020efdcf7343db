from typing import List, Optional

import pytest
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient

from sarisari import SariSariSystem
from sarisari.ai import SariClient, StaticCredentialStore
from sarisari.models import Item, User
from sarisari.utils import Mailer


class FakeSariClient(SariClient):
    """Replays canned responses in order and records every prompt"""

    def __init__(self, responses: Optional[List[Optional[str]]] = None):
        super().__init__(StaticCredentialStore(['test-key']))
        self.responses = list(responses or [])
        self.prompts: List[str] = []

    def queue(self, *responses: Optional[str]) -> None:
        self.responses.extend(responses)

    async def generate(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        if not self.responses:
            return None
        return self.responses.pop(0)


class FakeMailer(Mailer):
    def __init__(self):
        super().__init__()
        self.sent = []

    @property
    def is_configured(self) -> bool:
        return True

    async def send(self, to_email: str, subject: str, html: str) -> bool:
        self.sent.append({'to': to_email, 'subject': subject, 'html': html})
        return True

    async def send_verification_code(self, to_email: str, code: str) -> bool:
        self.sent.append({'to': to_email, 'code': code})
        return True

    def last_code(self, email: str) -> str:
        return [m for m in self.sent if m['to'] == email][-1]['code']


@pytest.fixture
def db():
    return AsyncMongoMockClient()['sarisari_test']


@pytest.fixture
def ai_client():
    return FakeSariClient()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def system(db, ai_client, mailer):
    return SariSariSystem(db, ai_client=ai_client, mailer=mailer)


@pytest.fixture
def seller():
    return User(id=str(ObjectId()), username='nena', email='nena@example.com',
                is_email_verified=True, role='Seller')


@pytest.fixture
async def store(system, seller):
    return await system.stores.get_or_create_for_owner(seller)


@pytest.fixture
def add_item(system, store):
    async def _add(name, price=10, cost_price=8, quantity=10, category='Snacks', store_id=None):
        return await system.positions.append(Item(
            store_id=store_id or store.id, name=name, category=category,
            price=price, cost_price=cost_price, quantity=quantity,
        ))
    return _add
