import json
import os
from collections.abc import MutableMapping
from pathlib import Path
from urllib.parse import quote, unquote

import structlog

from ..config import STORAGE_KEY
from ..domain.ledger import ReviewLedger
from ..domain.logic import compute_next
from ..domain.state import ReviewEntry, ScheduleState
from ..exceptions import StorageError
from ..utils.time import now_ms
from .session import (
    ReviewSession,
    resolve_quality,
    validate_card_id,
    validate_quality,
    validate_response_time,
)

logger = structlog.get_logger()


def scoped_key(base_key, scope_id=None):
    if not scope_id:
        return base_key
    return f"{base_key}:{scope_id}"


class FileStore(MutableMapping):
    """
    String key/value store persisted as one file per key under ``root``.
    """

    suffix = ".json"

    def __init__(self, root):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key):
        return self.root / (quote(key, safe="") + self.suffix)

    def __getitem__(self, key):
        path = self._path(key)
        if not path.exists():
            raise KeyError(key)
        return path.read_text(encoding="utf-8")

    def __setitem__(self, key, value):
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        finally:
            if tmp.exists():
                tmp.unlink()

    def __delitem__(self, key):
        path = self._path(key)
        if not path.exists():
            raise KeyError(key)
        path.unlink()

    def __iter__(self):
        for path in sorted(self.root.glob("*" + self.suffix)):
            yield unquote(path.name[: -len(self.suffix)])

    def __len__(self):
        return sum(1 for _ in self)


class LocalReviewSession(ReviewSession):
    """
    Review session over a key/value store holding one JSON document per scope.

    ``store`` is any mutable mapping of str to str: a plain dict for tests and
    single-process use, or a FileStore. The document lives under
    ``"<storage_key>:<study_set_id>"`` so each study set has its own queue.
    """

    def __init__(self, store, study_set_id=None, storage_key=STORAGE_KEY, clock=now_ms):
        super().__init__(study_set_id=study_set_id, clock=clock)
        self.store = store
        self.key = scoped_key(storage_key, study_set_id)

    def _load(self):
        try:
            raw = self.store.get(self.key)
        except OSError as exc:
            raise StorageError(f"could not read {self.key}: {exc}") from exc
        if raw is None:
            return {}, ReviewLedger()

        try:
            data = json.loads(raw)
            cards = [ScheduleState.from_dict(c) for c in data.get("cards", [])]
            history = [ReviewEntry.from_dict(e) for e in data.get("history", [])]
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error("local_store_corrupt", key=self.key, error=str(exc))
            raise StorageError(f"stored data under {self.key} is corrupt", retryable=False) from exc

        return {c.card_id: c for c in cards}, ReviewLedger(history)

    def _save(self, states, ledger):
        document = json.dumps({
            "cards": [s.to_dict() for s in states.values()],
            "history": [e.to_dict() for e in ledger],
        })
        try:
            self.store[self.key] = document
        except OSError as exc:
            logger.error("local_store_write_failed", key=self.key, error=str(exc))
            raise StorageError(f"could not write {self.key}: {exc}") from exc

    def record_answer(self, card_id, correct, quality=None, response_time_ms=None):
        card_id = validate_card_id(card_id)
        response_time_ms = validate_response_time(response_time_ms)
        states, ledger = self._load()
        prior = states.get(card_id)
        quality = resolve_quality(prior, correct, quality, response_time_ms)
        now = self.clock()

        state = compute_next(
            prior, quality, correct, now, card_id=card_id, response_time_ms=response_time_ms
        )
        states[card_id] = state
        ledger.append(ReviewEntry(
            card_id=card_id,
            quality=quality,
            correct=bool(correct),
            timestamp_ms=now,
            response_time_ms=response_time_ms,
        ))
        self._save(states, ledger)

        logger.info("review_scheduled",
            store_key=self.key,
            card_id=str(card_id),
            quality=quality,
            correct=bool(correct),
            interval_days=state.interval_days,
            repetitions=state.repetitions,
        )
        return state

    def override_last_quality(self, card_id, quality):
        card_id = validate_card_id(card_id)
        quality = validate_quality(quality)
        states, ledger = self._load()

        state = ledger.override_last_quality(card_id, quality)
        if state is None:
            logger.info("override_nothing_to_override", store_key=self.key, card_id=str(card_id))
            return None

        states[card_id] = state
        self._save(states, ledger)
        logger.info("review_quality_overridden",
            store_key=self.key,
            card_id=str(card_id),
            quality=quality,
            interval_days=state.interval_days,
        )
        return state

    def get_states(self):
        states, _ = self._load()
        return states

    def get_history(self, card_id):
        _, ledger = self._load()
        return ledger.entries_for(card_id)

    def clear_all(self):
        try:
            self.store.pop(self.key, None)
        except OSError as exc:
            raise StorageError(f"could not clear {self.key}: {exc}") from exc
        logger.info("review_data_cleared", store_key=self.key)
