import pytest

from trivia.errors import DuplicateCode, InvalidCode
from trivia.services.games import RoomRegistry
from trivia.services.games.registry import normalize_code


@pytest.mark.parametrize('code', ['ABCD1234', 'abcd1234', 'a1B2c3D4', '00000000', 'zzzzzzzz'])
def test_create_room_once_per_code(code):
    registry = RoomRegistry()
    room = registry.create_room(code, 'host')
    assert room.code == code.upper()
    assert room.host_id == 'host'
    with pytest.raises(DuplicateCode):
        registry.create_room(code.lower(), 'other')
    with pytest.raises(DuplicateCode):
        registry.create_room(code.upper(), 'other')
    assert len(registry) == 1


@pytest.mark.parametrize('code', ['', 'ABC123', 'ABCD12345', 'ABCD-123', 'ABCD 123', 'ÀBCD1234', 'ABCD1234\n', 'abcd1234\n', None, 12345678])
def test_create_room_rejects_invalid_codes(code):
    registry = RoomRegistry()
    with pytest.raises(InvalidCode):
        registry.create_room(code, 'host')
    assert len(registry) == 0


def test_normalize_code():
    assert normalize_code('abcd1234') == 'ABCD1234'
    assert normalize_code('abc') is None


def test_lookup_is_case_insensitive():
    registry = RoomRegistry()
    room = registry.create_room('Game2024', 'host')
    assert registry.lookup('GAME2024') is room
    assert registry.lookup('game2024') is room
    assert registry.lookup('OTHER123') is None
    assert registry.lookup(None) is None


def test_destroy_is_idempotent_and_unbinds_connections():
    registry = RoomRegistry()
    registry.create_room('ABCD1234', 'host')
    registry.bind('host', 'ABCD1234')
    registry.bind('guest', 'ABCD1234')
    registry.bind('elsewhere', 'ZZZZ9999')

    assert registry.destroy('abcd1234') is not None
    assert registry.destroy('ABCD1234') is None
    assert registry.lookup('ABCD1234') is None
    assert registry.code_for('host') is None
    assert registry.code_for('guest') is None
    assert registry.code_for('elsewhere') == 'ZZZZ9999'


def test_code_can_be_reused_after_destroy():
    registry = RoomRegistry()
    first = registry.create_room('ABCD1234', 'host')
    registry.destroy('ABCD1234')
    second = registry.create_room('abcd1234', 'host2')
    assert second is not first
    assert second.host_id == 'host2'


def test_room_for_follows_binding():
    registry = RoomRegistry()
    room = registry.create_room('ABCD1234', 'host')
    assert registry.room_for('host') is None
    registry.bind('host', room.code)
    assert registry.room_for('host') is room
    assert registry.connections_in('ABCD1234') == ['host']
    assert registry.unbind('host') == 'ABCD1234'
    assert registry.unbind('host') is None
    assert registry.room_for('host') is None


def test_room_players_and_host_flag():
    registry = RoomRegistry()
    room = registry.create_room('ABCD1234', 'host')
    room.add_player('host', 'Hana')
    room.add_player('p1', 'Alice')
    room.add_player('p1', 'Alicia')
    assert [p['name'] for p in room.player_list()] == ['Hana', 'Alicia']
    assert [p['isHost'] for p in room.player_list()] == [True, False]
    assert room.remove_player('p1').name == 'Alicia'
    assert room.remove_player('p1') is None


def test_trailing_newline_does_not_shadow_existing_room():
    registry = RoomRegistry()
    registry.create_room('ABCD1234', 'host')
    with pytest.raises(InvalidCode):
        registry.create_room('abcd1234\n', 'other')
    assert normalize_code('ABCD1234\n') is None
    assert len(registry) == 1
