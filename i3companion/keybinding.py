from typing import Iterable, Optional

import i3ipc

INPUT_TYPES = ('keyboard', 'mouse')


class KeyBinding:
    """A key chord as configured by the user.

    Compared against the `binding` field of i3 binding events: the symbol, the
    input type and the full set of modifiers must all be equal.
    """

    def __init__(self,
                 event_state_mask: Iterable[str],
                 symbol: Optional[str] = None,
                 input_type: str = 'keyboard'):
        self.event_state_mask = frozenset(event_state_mask)
        self.symbol = symbol
        self.input_type = input_type

    def matches(self, observed: i3ipc.events.BindingInfo) -> bool:
        return matches(self, observed)

    def __eq__(self, other):
        if not isinstance(other, KeyBinding):
            return NotImplemented
        return (self.event_state_mask == other.event_state_mask and
                self.symbol == other.symbol and
                self.input_type == other.input_type)

    def __hash__(self):
        return hash((self.event_state_mask, self.symbol, self.input_type))

    def __str__(self):
        keys = sorted(self.event_state_mask)
        if self.symbol is not None:
            keys.append(self.symbol)
        return '+'.join(keys) + f' ({self.input_type})'

    def __repr__(self):
        return f'KeyBinding({self})'


def matches(configured: KeyBinding,
            observed: i3ipc.events.BindingInfo) -> bool:
    observed_mask = set(observed.event_state_mask or ())
    if configured.symbol != observed.symbol:
        return False
    if configured.input_type != observed.input_type:
        return False
    if len(configured.event_state_mask) != len(observed_mask):
        return False
    return all(m in configured.event_state_mask for m in observed_mask)
