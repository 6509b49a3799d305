# src/daytasks/tasks/task_lifecycle.py

from __future__ import annotations

"""
Task lifecycle manager.

Owns the in-memory TaskStore and is its only writer. Every mutation:
- validates input before touching the network,
- resolves an occurrence back to the template it came from,
- persists through the injected TaskRepo,
- and only then applies the change locally.

A failed round-trip leaves the local store untouched. Mutations are
serialized by one asyncio.Lock; the scheduler only reads between them.
"""

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from datetime import date, datetime

from ..core.ports import CredentialProvider, StoreListener, TaskRepo
from ..errors import (
    AuthExpiredError,
    InvalidOperationError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from . import recurrence
from .task_models import (
    DirectOccurrence,
    Occurrence,
    SynthesizedOccurrence,
    TaskDraft,
    TaskStore,
    TaskTemplate,
    TemplateId,
    make_instance_key,
)

logger = logging.getLogger(__name__)

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

# "<templateId>-YYYY-MM-DD": the date suffix is always 11 characters.
_DATE_SUFFIX_LEN = 11


def template_id_of(instance_key: str) -> str:
    """Template id part of an overlay key."""
    if len(instance_key) > _DATE_SUFFIX_LEN and instance_key[-_DATE_SUFFIX_LEN] == "-":
        return instance_key[:-_DATE_SUFFIX_LEN]
    return instance_key


def anchor_of(occurrence: Occurrence) -> str:
    """Date-key that owns the occurrence's template (where an edit lands)."""
    return occurrence.anchor_key


def _validate_draft(draft: TaskDraft) -> None:
    if not draft.title or not draft.title.strip():
        raise ValidationError("title is required")
    if draft.time and not TIME_RE.match(draft.time):
        raise ValidationError(f"time must be HH:MM, got {draft.time!r}")
    bad_days = [d for d in draft.repeat_days if not 0 <= int(d) <= 6]
    if bad_days:
        raise ValidationError(f"repeat days must be 0..6, got {sorted(bad_days)}")


def _validate_date_key(date_key: str) -> None:
    try:
        recurrence.parse_date_key(date_key)
    except ValueError as e:
        raise ValidationError(f"date must be YYYY-MM-DD, got {date_key!r}") from e


class TaskLifecycleManager:
    def __init__(
        self,
        repo: TaskRepo,
        *,
        credentials: CredentialProvider | None = None,
        store: TaskStore | None = None,
        id_clock: Callable[[], float] = time.time,
    ) -> None:
        self._repo = repo
        self._credentials = credentials
        self._store = store if store is not None else TaskStore()
        self._id_clock = id_clock
        self._lock = asyncio.Lock()
        self._listeners: list[StoreListener] = []
        self._online = True
        self._last_id = 0

    # ---- read side ----

    @property
    def store(self) -> TaskStore:
        return self._store

    @property
    def online(self) -> bool:
        return self._online

    @property
    def busy(self) -> bool:
        """True while a mutation (and its persistence round-trip) is in flight."""
        return self._lock.locked()

    def occurrences_on(self, target_date: date | datetime) -> list[Occurrence]:
        return recurrence.occurrences_on(self._store, target_date)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a store-change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---- helpers ----

    def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._store)
            except Exception:
                logger.exception("Store listener failed: %r", listener)

    def _set_online(self, value: bool) -> None:
        if value != self._online:
            logger.info("Task store is now %s", "online" if value else "offline")
        self._online = value

    async def _persist(self, what: str, call: Awaitable[None]) -> None:
        try:
            await call
        except TransportError:
            self._set_online(False)
            logger.warning("%s failed; local store left unchanged", what)
            raise
        except AuthExpiredError:
            logger.warning("%s rejected credentials; re-authentication required", what)
            if self._credentials is not None:
                self._credentials.discard()
            raise
        self._set_online(True)

    def _new_id(self) -> int:
        """Time-derived id, bumped past anything already in use."""
        candidate = max(int(self._id_clock() * 1000), self._last_id + 1)
        taken = self._store.template_ids()
        while str(candidate) in taken:
            candidate += 1
        self._last_id = candidate
        return candidate

    def _resolve(self, occurrence: Occurrence) -> tuple[str, int, TaskTemplate]:
        template_id: TemplateId
        if isinstance(occurrence, SynthesizedOccurrence):
            anchor, template_id = occurrence.anchor_key, occurrence.original_id
        elif isinstance(occurrence, DirectOccurrence):
            anchor, template_id = occurrence.date_key, occurrence.id
        else:
            raise TypeError(f"not an occurrence: {occurrence!r}")

        found = self._store.find(anchor, template_id)
        if found is None:
            raise NotFoundError(f"task {template_id} no longer exists on {anchor}")
        index, template = found
        return anchor, index, template

    # ---- mutations ----

    async def load(self) -> bool:
        """
        Replace the local store with the remote one.

        On transport failure the last good store is kept and the manager goes
        offline; returns False in that case.
        """
        async with self._lock:
            try:
                store = await self._repo.fetch_all()
            except TransportError:
                self._set_online(False)
                logger.warning("Loading tasks failed; keeping last known store")
                return False
            except AuthExpiredError:
                logger.warning("Loading tasks rejected credentials; re-authentication required")
                if self._credentials is not None:
                    self._credentials.discard()
                raise
            self._store = store
            self._set_online(True)
            logger.info("Loaded tasks days=%d", len(store.days))
        self._publish()
        return True

    async def create(self, date_key: str, draft: TaskDraft) -> TaskTemplate:
        _validate_draft(draft)
        _validate_date_key(date_key)

        async with self._lock:
            template = TaskTemplate(
                id=self._new_id(),
                title=draft.title.strip(),
                time=draft.time or None,
                completed=False,
                is_repeating=draft.is_repeating,
                repeat_type=draft.repeat_type,
                repeat_days=frozenset(draft.repeat_days),
                original_date=date_key if draft.is_repeating else None,
            )
            await self._persist("create", self._repo.create(date_key, template))
            self._store.days.setdefault(date_key, []).append(template)
            logger.debug("Task created id=%s date=%s repeating=%s", template.id, date_key, template.is_repeating)

        self._publish()
        return template

    async def edit(self, occurrence: Occurrence, draft: TaskDraft) -> TaskTemplate:
        """
        Apply draft to the template behind occurrence.

        A synthesized occurrence always edits its template (there are no
        per-occurrence overrides); use anchor_of() to re-focus on its date.
        """
        _validate_draft(draft)

        async with self._lock:
            anchor, index, template = self._resolve(occurrence)
            changes = {
                "title": draft.title.strip(),
                "time": draft.time or None,
                "is_repeating": draft.is_repeating,
                "repeat_type": draft.repeat_type,
                "repeat_days": frozenset(draft.repeat_days),
                "original_date": anchor if draft.is_repeating else None,
            }
            await self._persist("edit", self._repo.update(anchor, index, template.copy(**changes)))
            for name, value in changes.items():
                setattr(template, name, value)
            logger.debug("Task edited id=%s date=%s", template.id, anchor)

        self._publish()
        return template

    async def toggle_completion(self, occurrence: Occurrence) -> bool:
        """
        Flip completion and return the new value.

        Synthesized occurrences flip their overlay entry; direct ones flip the
        template's own flag. Neither touches the other.
        """
        async with self._lock:
            if isinstance(occurrence, SynthesizedOccurrence):
                # A stale listing must not leave an overlay entry for a deleted template.
                self._resolve(occurrence)
                key = make_instance_key(occurrence.original_id, occurrence.date_key)
                new_value = not self._store.completions.get(key, False)
                completions = dict(self._store.completions)
                completions[key] = new_value
                await self._persist("toggle", self._repo.set_completions(completions))
                self._store.completions = completions
            else:
                anchor, index, template = self._resolve(occurrence)
                new_value = not template.completed
                await self._persist(
                    "toggle", self._repo.update(anchor, index, template.copy(completed=new_value))
                )
                template.completed = new_value
            logger.debug("Completion toggled key=%s -> %s", occurrence.instance_key, new_value)

        self._publish()
        return new_value

    async def delete(self, occurrence: Occurrence) -> None:
        if isinstance(occurrence, SynthesizedOccurrence):
            raise InvalidOperationError(
                "cannot delete a repeating occurrence directly; edit the template to stop recurrence"
            )

        async with self._lock:
            anchor, index, template = self._resolve(occurrence)
            await self._persist("delete", self._repo.remove(anchor, index))
            del self._store.days[anchor][index]
            logger.debug("Task deleted id=%s date=%s", template.id, anchor)

        self._publish()

    async def prune_completions(self) -> int:
        """
        Drop overlay entries whose template no longer exists.

        Deleting a template leaves its overlay entries behind; this is the
        explicit way to evict them. Returns how many entries were dropped.
        """
        async with self._lock:
            live = self._store.template_ids()
            kept = {k: v for k, v in self._store.completions.items() if template_id_of(k) in live}
            dropped = len(self._store.completions) - len(kept)
            if dropped == 0:
                return 0
            await self._persist("prune", self._repo.set_completions(kept))
            self._store.completions = kept
            logger.info("Pruned %d stale completion entries", dropped)

        self._publish()
        return dropped
