"""
Tests for realtime fan-out.

These tests verify that:
- broadcast() waits for the surrounding transaction to commit
- rolled-back transactions never emit events
- send_event() wraps events in the realtime.event channel message
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.db import transaction

from core import realtime


@pytest.mark.django_db
class TestBroadcast:
    def test_sends_after_commit(self, django_capture_on_commit_callbacks):
        with patch("core.realtime.send_event") as send:
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                realtime.broadcast("directory", "user.changed", {"user_id": 1})
                send.assert_not_called()

        assert len(callbacks) == 1
        send.assert_called_once_with("directory", "user.changed", {"user_id": 1})

    def test_rollback_drops_event(self, django_capture_on_commit_callbacks):
        with patch("core.realtime.send_event") as send:
            with django_capture_on_commit_callbacks(execute=True):
                try:
                    with transaction.atomic():
                        realtime.broadcast("directory", "user.changed", {"user_id": 1})
                        raise RuntimeError("abort")
                except RuntimeError:
                    pass

        send.assert_not_called()

    def test_broadcast_many(self, django_capture_on_commit_callbacks):
        with patch("core.realtime.send_event") as send:
            with django_capture_on_commit_callbacks(execute=True):
                realtime.broadcast_many(
                    ["user_1", "user_2"], "conversation.changed", {"conversation_id": 9}
                )

        assert [c.args[0] for c in send.call_args_list] == ["user_1", "user_2"]


class TestSendEvent:
    def test_group_send_payload(self):
        with patch("core.realtime.get_channel_layer") as get_layer, patch(
            "core.realtime.async_to_sync"
        ) as to_sync:
            realtime.send_event("conversation_3", "typing.changed", {"conversation_id": 3})

        to_sync.assert_called_once_with(get_layer.return_value.group_send)
        to_sync.return_value.assert_called_once_with(
            "conversation_3",
            {
                "type": "realtime.event",
                "event": "typing.changed",
                "payload": {"conversation_id": 3},
            },
        )

    def test_without_channel_layer(self):
        with patch("core.realtime.get_channel_layer", return_value=None), patch(
            "core.realtime.async_to_sync"
        ) as to_sync:
            realtime.send_event("directory", "user.changed", {"user_id": 1})

        to_sync.assert_not_called()
