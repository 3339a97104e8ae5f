"""
Test data factories for generating test objects.

Factories build unsaved model instances with realistic defaults; tests add
them to the async session themselves.
"""

import uuid
from datetime import timedelta

import factory

from models import Memory, Message, MessageRole, User
from models.base import utcnow


class UserFactory(factory.Factory):
    """Factory for creating User test instances."""

    class Meta:
        model = User

    auth_user_id = factory.LazyFunction(lambda: f"auth_user_{uuid.uuid4()}")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"testuser{n}")
    is_active = True


class MessageFactory(factory.Factory):
    """Factory for creating Message test instances."""

    class Meta:
        model = Message

    ephemeral_conversation_id = factory.LazyFunction(lambda: uuid.uuid4().hex)
    sender = factory.Iterator([MessageRole.USER, MessageRole.ASSISTANT])
    text = factory.Faker("sentence", nb_words=8)
    timestamp = factory.Sequence(lambda n: utcnow() - timedelta(hours=1) + timedelta(seconds=n))
    # user_id will be passed when creating the message


class MemoryFactory(factory.Factory):
    """Factory for creating Memory test instances."""

    class Meta:
        model = Memory

    title = factory.Sequence(lambda n: f"Journal Entry {n}")
    content = factory.Faker("paragraph", nb_sentences=4)
    image_url = None
    # user_id, conversation_id will be passed when creating
