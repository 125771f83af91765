"""
Tests for chat models.

Covers:
    - DirectConversationPair canonical ordering and constraints
    - Membership / Reaction / TypingMarker uniqueness
    - Message ordering and sender deletion
    - Read cursor reset when the cursor message disappears
"""

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from chat.models import (
    Conversation,
    DirectConversationPair,
    Membership,
    Message,
    Reaction,
    TypingMarker,
)
from chat.tests.factories import (
    DirectConversationFactory,
    GroupConversationFactory,
    MembershipFactory,
    MessageFactory,
    ReactionFactory,
)
from users.tests.factories import UserFactory


@pytest.mark.django_db
class TestDirectConversationPair:
    def test_canonical_orders_ids(self):
        assert DirectConversationPair.canonical(7, 3) == (3, 7)
        assert DirectConversationPair.canonical(3, 7) == (3, 7)

    def test_factory_creates_pair_and_two_memberships(self, alice, bob):
        conversation = DirectConversationFactory(members=[bob, alice])

        pair = conversation.direct_pair
        assert pair.user_lower_id == min(alice.id, bob.id)
        assert pair.user_higher_id == max(alice.id, bob.id)
        assert conversation.memberships.count() == 2
        assert conversation.is_group is False

    def test_rejects_second_pair_for_same_users(self, alice, bob):
        DirectConversationFactory(members=[alice, bob])
        other = Conversation.objects.create(is_group=False)
        lower, higher = DirectConversationPair.canonical(alice.id, bob.id)

        with pytest.raises(IntegrityError), transaction.atomic():
            DirectConversationPair.objects.create(
                conversation=other, user_lower_id=lower, user_higher_id=higher
            )

    def test_rejects_non_canonical_order(self, alice, bob):
        conversation = Conversation.objects.create(is_group=False)
        lower, higher = DirectConversationPair.canonical(alice.id, bob.id)

        with pytest.raises(IntegrityError), transaction.atomic():
            DirectConversationPair.objects.create(
                conversation=conversation, user_lower_id=higher, user_higher_id=lower
            )


@pytest.mark.django_db
class TestMembership:
    def test_unique_per_conversation_and_user(self, group_conversation, alice):
        with pytest.raises(IntegrityError), transaction.atomic():
            Membership.objects.create(conversation=group_conversation, user=alice)

    def test_cursor_resets_when_message_is_removed(self, group_conversation, alice, bob):
        message = MessageFactory(conversation=group_conversation, sender=bob)
        membership = Membership.objects.get(conversation=group_conversation, user=alice)
        membership.last_read_message = message
        membership.save()

        message.delete()

        membership.refresh_from_db()
        assert membership.last_read_message is None

    def test_str(self):
        membership = MembershipFactory()
        assert str(membership) == (
            f"Membership(user={membership.user_id}, "
            f"conversation={membership.conversation_id})"
        )


@pytest.mark.django_db
class TestMessage:
    def test_default_ordering_is_created_at_then_id(self, group_conversation, alice):
        first = MessageFactory(conversation=group_conversation, sender=alice)
        second = MessageFactory(conversation=group_conversation, sender=alice)
        Message.objects.filter(id__in=[first.id, second.id]).update(
            created_at=first.created_at
        )

        assert list(group_conversation.messages.all()) == [first, second]

    def test_survives_sender_deletion(self, group_conversation):
        sender = UserFactory()
        MembershipFactory(conversation=group_conversation, user=sender)
        message = MessageFactory(conversation=group_conversation, sender=sender)

        sender.delete()

        message.refresh_from_db()
        assert message.sender is None

    def test_deleted_defaults_false(self):
        assert MessageFactory().deleted is False


@pytest.mark.django_db
class TestReaction:
    def test_one_reaction_per_user_and_message(self):
        reaction = ReactionFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            Reaction.objects.create(
                message=reaction.message, user=reaction.user, emoji="🎉"
            )

    def test_removed_with_message(self):
        reaction = ReactionFactory()
        reaction.message.delete()

        assert not Reaction.objects.filter(id=reaction.id).exists()


@pytest.mark.django_db
class TestTypingMarker:
    def test_unique_per_conversation_and_user(self, group_conversation, alice):
        expires_at = timezone.now() + timedelta(seconds=2)
        TypingMarker.objects.create(
            conversation=group_conversation, user=alice, expires_at=expires_at
        )

        with pytest.raises(IntegrityError), transaction.atomic():
            TypingMarker.objects.create(
                conversation=group_conversation, user=alice, expires_at=expires_at
            )


@pytest.mark.django_db
class TestConversationStr:
    def test_group_uses_name(self):
        assert str(GroupConversationFactory(name="Team", members=[])) == "Team"

    def test_direct(self):
        conversation = DirectConversationFactory()
        assert str(conversation) == f"Direct {conversation.pk}"
