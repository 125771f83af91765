"""
Test configuration and fixtures for chat tests.

This module provides:
- Users (alice, bob, carol, outsider)
- Conversations (direct alice-bob, group of all three)
- API clients authenticated as each user
- A recorder for realtime broadcasts

Usage:
    def test_example(direct_conversation, alice_client):
        response = alice_client.get(
            f"/api/v1/chat/conversations/{direct_conversation.id}/"
        )
        assert response.status_code == 200
"""

from contextlib import contextmanager
from unittest import mock

import pytest
from rest_framework.test import APIClient

from chat.tests.factories import DirectConversationFactory, GroupConversationFactory
from users.tests.factories import UserFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return UserFactory(display_name="Alice")


@pytest.fixture
def bob(db):
    return UserFactory(display_name="Bob")


@pytest.fixture
def carol(db):
    return UserFactory(display_name="Carol")


@pytest.fixture
def outsider(db):
    """A user who belongs to none of the fixture conversations."""
    return UserFactory(display_name="Outsider")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def direct_conversation(alice, bob):
    """Direct conversation between alice and bob."""
    return DirectConversationFactory(members=[alice, bob])


@pytest.fixture
def group_conversation(alice, bob, carol):
    """Group conversation with alice, bob and carol."""
    return GroupConversationFactory(name="Team", members=[alice, bob, carol])


# =============================================================================
# API Client Fixtures
# =============================================================================


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def alice_client(alice):
    return _client_for(alice)


@pytest.fixture
def bob_client(bob):
    return _client_for(bob)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)


# =============================================================================
# Realtime Fixtures
# =============================================================================


class EventRecorder(list):
    """(group, event, payload) tuples in send order."""

    def record(self, group, event, payload):
        self.append((group, event, payload))

    def names(self):
        return [(group, event) for group, event, _ in self]

    def for_group(self, group):
        return [(event, payload) for g, event, payload in self if g == group]


@pytest.fixture
def capture_events(django_capture_on_commit_callbacks):
    """
    Record realtime events as they would reach the channel layer.

    Commit callbacks run when the block exits, so the recorder only holds
    events from committed work.

    Usage:
        def test_example(capture_events, alice, bob):
            with capture_events() as events:
                ConversationService.get_or_create_dm(alice.id, bob.id)
            assert (f"user_{bob.id}", "conversation.changed") in events.names()
    """

    @contextmanager
    def _capture():
        recorder = EventRecorder()
        with mock.patch("core.realtime.send_event", side_effect=recorder.record):
            with django_capture_on_commit_callbacks(execute=True):
                yield recorder

    return _capture
