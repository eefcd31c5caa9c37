from dataclasses import replace
from typing import Iterable, Iterator, List, Optional

from .logic import replay
from .state import CardId, ReviewEntry, ScheduleState


class ReviewLedger:
    """
    Append-only log of review events.

    The only mutation allowed on recorded history is re-grading a card's most
    recent entry, after which that card's state is rebuilt from its full history.
    """

    def __init__(self, entries: Optional[Iterable[ReviewEntry]] = None):
        self._entries: List[ReviewEntry] = list(entries or [])

    def __iter__(self) -> Iterator[ReviewEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: ReviewEntry) -> None:
        self._entries.append(entry)

    def clear(self) -> None:
        self._entries = []

    def entries_for(self, card_id: CardId) -> List[ReviewEntry]:
        # sorted() is stable, so equal timestamps keep insertion order
        own = [e for e in self._entries if e.card_id == card_id]
        return sorted(own, key=lambda e: e.timestamp_ms)

    def last_position(self, card_id: CardId) -> Optional[int]:
        """Index of the card's most recent entry; latest insert wins on ties."""
        position = None
        latest = None
        for index, entry in enumerate(self._entries):
            if entry.card_id != card_id:
                continue
            if latest is None or entry.timestamp_ms >= latest:
                position, latest = index, entry.timestamp_ms
        return position

    def replay_card(self, card_id: CardId) -> Optional[ScheduleState]:
        return replay(self.entries_for(card_id))

    def override_last_quality(self, card_id: CardId, quality: int) -> Optional[ScheduleState]:
        """
        Re-grade the card's most recent review and rebuild its state.

        ``correct`` on the entry is kept as recorded and no new entry is added.
        Returns None when the card has no history.
        """
        position = self.last_position(card_id)
        if position is None:
            return None
        self._entries[position] = replace(self._entries[position], quality=int(quality))
        return self.replay_card(card_id)
