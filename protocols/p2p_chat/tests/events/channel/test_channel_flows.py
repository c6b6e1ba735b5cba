"""
Tests for channel directory flows.
"""
import asyncio
import pytest

from core.errors import BackendCallFailed, ChannelAlreadyJoined


class TestLoadChannels:

    @pytest.mark.unit
    def test_load_replaces_directory_and_subscribes_in_order(self, make_session, backend):
        backend.save_channel({'topic': 'general', 'uuid': 'c1', 'last_message_uuid': 'm0'})
        backend.save_channel({'topic': 'random', 'uuid': 'c2', 'last_message_uuid': None})
        session = make_session()
        session.db.execute("INSERT INTO channels (topic, uuid, unread_count) VALUES ('stale', 'c0', 4)")
        session.db.commit()

        result = asyncio.run(session.load_channels())

        assert session.channels() == [
            {'topic': 'general', 'uuid': 'c1', 'unread_count': 0, 'last_message_uuid': 'm0'},
            {'topic': 'random', 'uuid': 'c2', 'unread_count': 0, 'last_message_uuid': None},
        ]
        assert backend.calls_to('add_topic') == [{'topic': 'c1'}, {'topic': 'c2'}]
        assert result['data']['subscribed'] == ['c1', 'c2']
        assert result['data']['failed'] == []

    @pytest.mark.unit
    def test_subscribe_failure_does_not_stop_the_rest(self, make_session, backend, monkeypatch):
        for uuid in ('c1', 'c2', 'c3'):
            backend.save_channel({'topic': uuid, 'uuid': uuid})
        original = backend.invoke

        async def flaky(command, args):
            if command == 'add_topic' and args['topic'] == 'c2':
                raise RuntimeError('gossipsub refused')
            return await original(command, args)

        monkeypatch.setattr(backend, 'invoke', flaky)
        session = make_session()
        result = asyncio.run(session.load_channels())

        assert [c['uuid'] for c in session.channels()] == ['c1', 'c2', 'c3']
        assert result['data']['subscribed'] == ['c1', 'c3']
        assert result['data']['failed'] == [{'uuid': 'c2', 'topic': 'c2', 'error': 'gossipsub refused'}]

    @pytest.mark.unit
    def test_get_channels_failure_propagates(self, make_session, backend):
        backend.fail('get_channels', 'disk unreadable')
        session = make_session()
        with pytest.raises(BackendCallFailed):
            asyncio.run(session.load_channels())
        assert backend.calls_to('add_topic') == []

    @pytest.mark.unit
    def test_hung_subscribe_is_bounded_by_timeout(self, make_session, backend):
        backend.save_channel({'topic': 'general', 'uuid': 'c1'})
        backend.hang('add_topic')
        session = make_session(subscribe_timeout_ms=20)

        result = asyncio.run(session.load_channels())
        assert result['data']['failed'][0]['error'] == 'timed out after 20ms'

    @pytest.mark.unit
    def test_empty_directory(self, make_session, backend):
        session = make_session()
        result = asyncio.run(session.load_channels())
        assert result['data']['channels'] == []
        assert backend.calls_to('add_topic') == []


class TestCreateChannel:

    @pytest.mark.unit
    def test_create_persists_then_subscribes(self, make_session, backend):
        session = make_session()
        result = asyncio.run(session.create_channel('  general  '))

        channel_uuid = result['ids']['channel']
        assert session.channels() == [
            {'topic': 'general', 'uuid': channel_uuid, 'unread_count': 0, 'last_message_uuid': None}
        ]
        assert [name for name, _ in backend.calls] == ['add_channel', 'add_topic']
        assert backend.calls_to('add_channel') == [{'topic': 'general', 'uuid': channel_uuid}]
        assert backend.calls_to('add_topic') == [{'topic': channel_uuid}]
        assert backend.load_channels() == [{'topic': 'general', 'uuid': channel_uuid, 'last_message_uuid': None}]
        assert session.query('system.mutations', {'kind': 'channel'})[0]['state'] == 'confirmed'

    @pytest.mark.unit
    @pytest.mark.parametrize('name', ['', '   '])
    def test_blank_name_rejected(self, make_session, backend, name):
        session = make_session()
        with pytest.raises(ValueError):
            asyncio.run(session.create_channel(name))
        assert backend.calls == []
        assert session.channels() == []

    @pytest.mark.unit
    def test_names_may_collide(self, make_session):
        session = make_session()

        async def create_two():
            await session.create_channel('general')
            await session.create_channel('general')

        asyncio.run(create_two())
        channels = session.channels()
        assert [c['topic'] for c in channels] == ['general', 'general']
        assert channels[0]['uuid'] != channels[1]['uuid']

    @pytest.mark.unit
    def test_generated_uuid_never_reuses_existing_channel(self, make_session, backend, monkeypatch):
        from protocols.p2p_chat.events.channel import flows as channel_flows

        session = make_session()
        session.db.execute("INSERT INTO channels (topic, uuid, unread_count) VALUES ('general', 'taken', 0)")
        session.db.commit()
        candidates = iter(['taken', 'taken', 'fresh'])
        monkeypatch.setattr(channel_flows.uuid_lib, 'uuid4', lambda: next(candidates))

        result = asyncio.run(session.create_channel('random'))

        assert result['ids']['channel'] == 'fresh'
        assert [c['uuid'] for c in session.channels()] == ['taken', 'fresh']
        assert backend.calls_to('add_channel') == [{'topic': 'random', 'uuid': 'fresh'}]

    @pytest.mark.unit
    def test_persist_failure_retracts_channel(self, make_session, backend):
        backend.fail('add_channel', 'disk full')
        session = make_session()

        with pytest.raises(BackendCallFailed):
            asyncio.run(session.create_channel('general'))

        assert session.channels() == []
        assert backend.calls_to('add_topic') == []
        mutations = session.query('system.mutations', {'kind': 'channel'})
        assert len(mutations) == 1
        assert mutations[0]['state'] == 'failed'
        assert mutations[0]['error'] == 'disk full'

    @pytest.mark.unit
    def test_persist_failure_kept_when_retraction_disabled(self, make_session, backend):
        backend.fail('add_channel', 'disk full')
        session = make_session(retract_failed_channels=False)

        with pytest.raises(BackendCallFailed):
            asyncio.run(session.create_channel('general'))

        assert [c['topic'] for c in session.channels()] == ['general']
        assert session.query('system.mutations')[0]['state'] == 'failed'

    @pytest.mark.unit
    def test_subscribe_failure_keeps_persisted_channel(self, make_session, backend):
        backend.fail('add_topic', 'not ready')
        session = make_session()

        with pytest.raises(BackendCallFailed) as exc:
            asyncio.run(session.create_channel('general'))

        assert exc.value.command == 'add_topic'
        assert [c['topic'] for c in session.channels()] == ['general']
        assert session.query('system.mutations')[0]['state'] == 'confirmed'


class TestJoinChannel:

    @pytest.mark.unit
    def test_join_uses_supplied_uuid(self, make_session, backend):
        session = make_session()
        asyncio.run(session.join_channel('shared', 'uuid-42'))

        assert session.channels() == [
            {'topic': 'shared', 'uuid': 'uuid-42', 'unread_count': 0, 'last_message_uuid': None}
        ]
        assert backend.calls_to('add_channel') == [{'topic': 'shared', 'uuid': 'uuid-42'}]
        assert backend.calls_to('add_topic') == [{'topic': 'uuid-42'}]

    @pytest.mark.unit
    def test_join_existing_uuid_rejected_without_change(self, make_session, backend):
        session = make_session()
        asyncio.run(session.join_channel('shared', 'uuid-42'))
        calls_before = list(backend.calls)

        with pytest.raises(ChannelAlreadyJoined) as exc:
            asyncio.run(session.join_channel('other name', 'uuid-42'))

        assert "You're already in this topic" in str(exc.value)
        assert [c['topic'] for c in session.channels()] == ['shared']
        assert backend.calls == calls_before

    @pytest.mark.unit
    @pytest.mark.parametrize('name,uuid', [('', 'u1'), ('n', ''), ('n', '  ')])
    def test_name_and_uuid_required(self, make_session, name, uuid):
        session = make_session()
        with pytest.raises(ValueError):
            asyncio.run(session.join_channel(name, uuid))


class TestChannelCommands:

    @pytest.mark.unit
    def test_subscribe_and_save_leave_directory_alone(self, make_session, backend):
        session = make_session()

        async def run():
            await session.subscribe('c1')
            await session.save_channel('general', 'c1')

        asyncio.run(run())
        assert backend.topics == ['c1']
        assert backend.load_channels() == [{'topic': 'general', 'uuid': 'c1', 'last_message_uuid': None}]
        assert session.channels() == []

    @pytest.mark.unit
    def test_mark_read_resets_unread(self, make_session, backend):
        session = make_session()

        async def run():
            await session.join_channel('general', 'c1')
            session.pipeline.attach(backend)
            backend.deliver_message('peer-a', 'c1', 'one', 'm1')
            backend.deliver_message('peer-a', 'c1', 'two', 'm2')
            assert session.channels()[0]['unread_count'] == 2
            assert session.query('channel.unread_total') == 2
            await session.mark_read('c1')

        asyncio.run(run())
        channel = session.channels()[0]
        assert channel['unread_count'] == 0
        assert channel['last_message_uuid'] == 'm2'
