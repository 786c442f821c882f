"""Test the key binding registry."""

from unittest.mock import Mock

from markview.commands import (
    CommandRegistry,
    CopySelectionCommand,
    LineDownCommand,
    PageDownCommand,
    ToggleSectionCommand,
    ViewCommand,
)
from markview.events import NoEvent
from markview.keyboard import KeyEvent, KeyType


def test_default_bindings():
    registry = CommandRegistry()
    assert isinstance(registry.get_command(KeyType.REGULAR, 'j'), LineDownCommand)
    assert isinstance(registry.get_command(KeyType.SPECIAL, 'down'), LineDownCommand)
    assert isinstance(registry.get_command(KeyType.REGULAR, ' '), PageDownCommand)
    assert isinstance(registry.get_command(KeyType.CTRL, 'c'), CopySelectionCommand)
    assert isinstance(registry.get_command(KeyType.REGULAR, '\t'), ToggleSectionCommand)
    assert registry.get_command(KeyType.REGULAR, 'x') is None


def test_custom_binding_is_executed():
    class Marker(ViewCommand):
        def execute(self, view, key_event):
            view.marked = True
            return NoEvent()

    registry = CommandRegistry()
    registry.register(KeyType.REGULAR, 'x', Marker())
    view = Mock()
    registry.execute(view, KeyEvent(key_type=KeyType.REGULAR, value='x', raw='x'))
    assert view.marked is True


def test_alt_keys_use_alt_bindings():
    registry = CommandRegistry()
    called = Mock(return_value=NoEvent())
    command = Mock(spec=ViewCommand, execute=called)
    registry.register(KeyType.ALT, 'j', command)

    event = KeyEvent(key_type=KeyType.REGULAR, value='j', raw='\x1bj', is_alt=True)
    registry.execute(Mock(), event)
    called.assert_called_once()


def test_unbound_key_returns_no_event():
    registry = CommandRegistry()
    event = KeyEvent(key_type=KeyType.SPECIAL, value='insert', raw='<INSERT>')
    assert registry.execute(Mock(), event) == NoEvent()
