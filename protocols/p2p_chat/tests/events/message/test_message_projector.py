"""
Tests for incoming message projection.
"""
import pytest

from core.deltas import DeltaApplicator
from core.queries import query_registry
from protocols.p2p_chat.events import decode_event
from protocols.p2p_chat.events.message.projector import project
from protocols.p2p_chat.events.message.validator import validate


class TestMessageProjector:
    """Test message event projection."""

    @pytest.fixture
    def sample_message_event(self):
        """Create a sample message event envelope."""
        envelope = decode_event('p2p-message', {
            'from': 'peer-a',
            'content': 'Hello, world!',
            'timestamp': '2024-05-01T10:00:00.000Z',
            'topic': 'chan-1',
            'uuid': 'msg-1',
        })
        envelope['validated'] = True
        return envelope

    @pytest.mark.unit
    @pytest.mark.event_type
    def test_project_message_creates_deltas(self, sample_message_event):
        deltas = project(sample_message_event)

        assert len(deltas) == 2
        insert = deltas[0]
        assert insert['op'] == 'insert'
        assert insert['table'] == 'messages'
        assert insert['data']['sender'] == 'peer-a'
        assert insert['data']['own'] == 0
        assert 'sql' in deltas[1]

    @pytest.mark.unit
    @pytest.mark.event_type
    def test_duplicate_projects_nothing(self, sample_message_event):
        sample_message_event['duplicate'] = True
        assert project(sample_message_event) == []

    @pytest.mark.unit
    @pytest.mark.event_type
    def test_message_stored_as_not_own(self, initialized_db, sample_message_event):
        DeltaApplicator.apply_batch(project(sample_message_event), initialized_db)

        messages = query_registry.execute('message.get', {}, initialized_db)
        assert messages == [{
            'topic': 'chan-1',
            'from': 'peer-a',
            'content': 'Hello, world!',
            'timestamp': '2024-05-01T10:00:00.000Z',
            'uuid': 'msg-1',
            'own': False,
        }]

    @pytest.mark.unit
    @pytest.mark.event_type
    def test_same_uuid_keeps_first(self, initialized_db, sample_message_event):
        DeltaApplicator.apply_batch(project(sample_message_event), initialized_db)
        sample_message_event['event_data'] = dict(sample_message_event['event_data'], content='edited')
        DeltaApplicator.apply_batch(project(sample_message_event), initialized_db)

        messages = query_registry.execute('message.get', {}, initialized_db)
        assert [m['content'] for m in messages] == ['Hello, world!']

    @pytest.mark.unit
    @pytest.mark.event_type
    def test_bumps_unread_on_matching_channel(self, initialized_db, sample_message_event):
        initialized_db.execute(
            "INSERT INTO channels (topic, uuid, unread_count) VALUES ('general', 'chan-1', 0)"
        )
        initialized_db.commit()

        DeltaApplicator.apply_batch(project(sample_message_event), initialized_db)

        channel = query_registry.execute('channel.get', {'uuid': 'chan-1'}, initialized_db)[0]
        assert channel['unread_count'] == 1
        assert channel['last_message_uuid'] == 'msg-1'

    @pytest.mark.unit
    def test_topic_filter_and_order(self, initialized_db):
        for i, topic in enumerate(['a', 'b', 'a']):
            envelope = decode_event('p2p-message', {
                'from': 'x', 'content': f'm{i}', 'timestamp': 't', 'topic': topic, 'uuid': f'u{i}'
            })
            envelope['validated'] = True
            DeltaApplicator.apply_batch(project(envelope), initialized_db)

        only_a = query_registry.execute('message.get', {'topic': 'a'}, initialized_db)
        assert [m['content'] for m in only_a] == ['m0', 'm2']
        last = query_registry.execute('message.get', {'limit': 2}, initialized_db)
        assert [m['content'] for m in last] == ['m1', 'm2']


class TestMessageValidator:

    @pytest.mark.unit
    def test_missing_uuid_rejected(self):
        envelope = decode_event('p2p-message', {'from': 'a', 'content': 'c', 'timestamp': 't', 'topic': 'x'})
        assert validate(envelope) is False

    @pytest.mark.unit
    def test_empty_uuid_rejected(self):
        envelope = decode_event('p2p-message', {'from': 'a', 'content': 'c', 'timestamp': 't', 'topic': 'x', 'uuid': ''})
        assert validate(envelope) is False

    @pytest.mark.unit
    def test_empty_content_allowed(self):
        envelope = decode_event('p2p-message', {'from': 'a', 'content': '', 'timestamp': 't', 'topic': 'x', 'uuid': 'u'})
        assert validate(envelope) is True
