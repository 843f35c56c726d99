import enum
from typing import Collection, Dict, Iterator, List, Optional

CURSOR_MARKER = '>'


class Direction(enum.IntEnum):
    # Index step taken when walking the history. Index 0 holds the most
    # recently visited workspace.
    PREV = 1
    NEXT = -1


class HistoryMode(enum.Enum):
    SINGLE = 'single'
    PER_OUTPUT = 'per_output'


class History:
    """Recently visited workspace numbers, newest first, plus a cursor.

    The cursor is the browsing position while navigating through the history.
    Navigating does not reorder the entries. The navigation session ends with
    `reset_cursor`, which moves the entries visited during the session to the
    front.

    Invariants:
    - 0 <= cursor < len(self) whenever the history is not empty.
    - No two adjacent entries are equal.
    - len(self) <= max_size.
    """

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError(f'History size must be positive, got {max_size}')
        self.max_size = max_size
        self.entries: List[int] = []
        self.cursor = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> int:
        return self.entries[index]

    def __repr__(self):
        return f'History({self.entries}, cursor={self.cursor})'

    def current(self) -> Optional[int]:
        if not self.entries:
            return None
        return self.entries[self.cursor]

    def push(self, workspace: int) -> None:
        self.reset_cursor()
        if self.entries and self.entries[0] == workspace:
            return
        if len(self.entries) >= 2 and self.entries[1] == workspace:
            # Going back to the previous workspace: swap instead of growing,
            # so that A,B,A,B... stays two entries long.
            self.swap(0, 1)
            return
        self.entries.insert(0, workspace)
        if len(self.entries) > self.max_size:
            self.entries.pop()

    def reset_cursor(self) -> None:
        if self.cursor == 0:
            return
        # The head is about to move right after the cursor, it's stale if it
        # duplicates its new neighbour.
        while (0 < self.cursor < len(self.entries) - 1 and
               self.entries[self.cursor + 1] == self.entries[0]):
            del self.entries[0]
            self.cursor -= 1
        self.entries[:self.cursor + 1] = reversed(
            self.entries[:self.cursor + 1])
        self.cursor = 0

    def find(self,
             direction: Direction,
             start: Optional[int] = None,
             skip: Collection[int] = ()) -> Optional[int]:
        if start is None:
            start = self.cursor
        index = start + direction
        while 0 <= index < len(self.entries):
            if self.entries[index] not in skip:
                return index
            index += direction
        return None

    def find_head(self, skip: Collection[int] = ()) -> Optional[int]:
        for index in range(self.cursor):
            if self.entries[index] not in skip:
                return index
        return None

    def move_cursor(self,
                    direction: Direction,
                    skip: Collection[int] = ()) -> bool:
        target = self.find(direction, skip=skip)
        if target is None:
            return False
        self.cursor = target
        return True

    def set_cursor(self, index: int) -> None:
        if not 0 <= index < max(len(self.entries), 1):
            raise IndexError(f'Cursor {index} out of range for {self}')
        self.cursor = index

    def swap(self, i: int, j: int) -> None:
        self.entries[i], self.entries[j] = self.entries[j], self.entries[i]
        self._remove_adjacent_duplicates()

    def remove(self, index: int) -> int:
        workspace = self.entries.pop(index)
        if self.cursor > index:
            self.cursor -= 1
        self._remove_adjacent_duplicates()
        return workspace

    def _remove_adjacent_duplicates(self) -> None:
        for index in range(len(self.entries) - 1, 0, -1):
            if self.entries[index] == self.entries[index - 1]:
                del self.entries[index]
                if self.cursor >= index:
                    self.cursor -= 1
        self.cursor = min(self.cursor, max(len(self.entries) - 1, 0))

    def display(self) -> str:
        lines = []
        for index, workspace in enumerate(self.entries):
            marker = CURSOR_MARKER if index == self.cursor else ' '
            lines.append(f'{marker} {workspace}')
        return '\n'.join(lines)


class HistoryManager:
    """Either a single global history or one history per output."""

    def __init__(self, max_size: int, mode: HistoryMode = HistoryMode.SINGLE):
        self.max_size = max_size
        self.mode = mode
        self._single = History(max_size)
        self._per_output: Dict[Optional[str], History] = {}

    def get(self, output: Optional[str]) -> Optional[History]:
        if self.mode == HistoryMode.SINGLE:
            return self._single
        return self._per_output.get(output)

    def get_or_create(self, output: Optional[str]) -> History:
        if self.mode == HistoryMode.SINGLE:
            return self._single
        if output not in self._per_output:
            self._per_output[output] = History(self.max_size)
        return self._per_output[output]

    def histories(self) -> Iterator[History]:
        if self.mode == HistoryMode.SINGLE:
            yield self._single
        else:
            yield from self._per_output.values()

    def display(self, output: Optional[str]) -> str:
        history = self.get(output)
        if history is None or not history:
            return '(empty)'
        return history.display()
