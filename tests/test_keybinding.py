import pytest

from i3companion import keybinding
from tests import test_util

MOD4_SHIFT_O = keybinding.KeyBinding(['Mod4', 'shift'], 'o')


# yapf: disable
@pytest.mark.parametrize('mask,symbol,input_type,expected', [
    (['shift', 'Mod4'], 'o', 'keyboard', True),
    (['Mod4', 'shift'], 'o', 'keyboard', True),
    (['Mod4'], 'o', 'keyboard', False),
    (['Mod4', 'shift', 'ctrl'], 'o', 'keyboard', False),
    (['Mod4', 'ctrl'], 'o', 'keyboard', False),
    (['Mod4', 'shift'], 'i', 'keyboard', False),
    (['Mod4', 'shift'], None, 'keyboard', False),
    (['Mod4', 'shift'], 'o', 'mouse', False),
])
# yapf: enable
def test_matches(mask, symbol, input_type, expected):
    observed = test_util.create_binding_info(mask, symbol, input_type)
    assert keybinding.matches(MOD4_SHIFT_O, observed) == expected
    assert MOD4_SHIFT_O.matches(observed) == expected


def test_matches_modifier_only_chord():
    configured = keybinding.KeyBinding(['Mod4'])
    assert configured.matches(test_util.create_binding_info(['Mod4'], None))
    assert not configured.matches(
        test_util.create_binding_info(['Mod4'], 'o'))


def test_matches_empty_mask():
    configured = keybinding.KeyBinding([], 'F1')
    assert configured.matches(test_util.create_binding_info([], 'F1'))
    assert not configured.matches(
        test_util.create_binding_info(['shift'], 'F1'))


def test_equality_ignores_modifier_order():
    assert MOD4_SHIFT_O == keybinding.KeyBinding(['shift', 'Mod4'], 'o')
    assert MOD4_SHIFT_O != keybinding.KeyBinding(['shift', 'Mod4'], 'o',
                                                 'mouse')
    assert str(MOD4_SHIFT_O) == 'Mod4+shift+o (keyboard)'
