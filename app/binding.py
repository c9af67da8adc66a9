"""Binding of toggle controls to live collection membership."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from .collection_store import CollectionStore
from .models import CollectionCounts, CollectionName, MovieRef
from .sync import ViewSyncBroadcaster
from .views import PageView, ToggleControl

logger = logging.getLogger(__name__)

MembershipKey = tuple[int, CollectionName]


class BindingError(RuntimeError):
    """Raised when a control that is still bound is bound again."""


@dataclass(frozen=True, slots=True)
class ToggleOutcome:
    """What one click on a bound control did."""

    movie_id: int
    collection: CollectionName
    added: bool
    persisted: bool
    counts: CollectionCounts
    removed_from_view: bool = False


class Binding:
    """Handle returned by :meth:`CardStateBinder.bind`."""

    __slots__ = ("control", "movie", "_detach")

    def __init__(
        self,
        control: ToggleControl,
        movie: MovieRef,
        detach: Callable[["Binding"], None],
    ) -> None:
        self.control = control
        self.movie = movie
        self._detach: Callable[["Binding"], None] | None = detach

    @property
    def key(self) -> MembershipKey:
        return (self.movie.id, self.control.collection)

    @property
    def active(self) -> bool:
        return self._detach is not None

    def dispose(self) -> None:
        """Detach the click handler; safe to call more than once."""

        detach, self._detach = self._detach, None
        if detach is not None:
            detach(self)


class CardStateBinder:
    """Attaches one toggle handler per control for a rendered page.

    On click the handler toggles membership, flips the control (and every
    other control this binder holds for the same movie and collection),
    pushes fresh counts through the broadcaster and finally removes the card
    from a grid scoped to the collection it left. The visual flip is
    optimistic: it stands even when the write was not persisted.
    """

    def __init__(self, store: CollectionStore, broadcaster: ViewSyncBroadcaster) -> None:
        self._store = store
        self._broadcaster = broadcaster
        self._bindings: dict[MembershipKey, list[Binding]] = {}

    @classmethod
    def for_page(cls, store: CollectionStore, page: PageView) -> "CardStateBinder":
        return cls(store, ViewSyncBroadcaster.for_page(page))

    def bind(self, control: ToggleControl, movie: MovieRef) -> Binding:
        if control.bound:
            raise BindingError(
                f"{control.collection} control for movie {control.movie_id} is already bound; "
                "dispose the previous binding first"
            )
        if control.movie_id != movie.id:
            raise ValueError(
                f"Control for movie {control.movie_id} cannot be bound to movie {movie.id}"
            )

        binding = Binding(control, movie, self._detach)
        control.active = self._store.contains(control.collection, movie.id)
        control.handler = lambda: self._on_toggle(binding)
        self._bindings.setdefault(binding.key, []).append(binding)
        return binding

    def bind_page(self, page: PageView) -> list[Binding]:
        """Bind every control on ``page`` and sync its count surfaces."""

        bindings: list[Binding] = []
        if page.grid is not None:
            for card in page.grid.cards:
                for control in card.controls():
                    bindings.append(self.bind(control, card.movie))
        if page.details is not None:
            for control in page.details.controls():
                bindings.append(self.bind(control, page.details.movie))
        self._broadcaster.broadcast(self._store.counts())
        return bindings

    def bindings_for(self, movie_id: int, collection: CollectionName) -> list[Binding]:
        return list(self._bindings.get((movie_id, collection), ()))

    def dispose_all(self) -> None:
        for bindings in list(self._bindings.values()):
            for binding in list(bindings):
                binding.dispose()

    def _detach(self, binding: Binding) -> None:
        binding.control.handler = None
        peers = self._bindings.get(binding.key)
        if peers is None:
            return
        if binding in peers:
            peers.remove(binding)
        if not peers:
            del self._bindings[binding.key]

    def _on_toggle(self, binding: Binding) -> ToggleOutcome:
        collection = binding.control.collection
        movie = binding.movie

        result = self._store.toggle(collection, movie)
        if not result.persisted:
            logger.warning(
                "Toggle of movie %s in %s was not persisted; view keeps the optimistic state",
                movie.id,
                collection,
            )

        for peer in self._bindings.get(binding.key, ()):
            peer.control.active = result.added

        counts = self._store.counts()
        self._broadcaster.broadcast(counts)

        removed_card = None
        if not result.added:
            removed_card = self._broadcaster.remove_scoped(collection, movie.id)
        if removed_card is not None:
            self._dispose_controls(removed_card.controls())

        return ToggleOutcome(
            movie_id=movie.id,
            collection=collection,
            added=result.added,
            persisted=result.persisted,
            counts=counts,
            removed_from_view=removed_card is not None,
        )

    def _dispose_controls(self, controls: Iterable[ToggleControl]) -> None:
        targets = {id(control) for control in controls}
        for bindings in list(self._bindings.values()):
            for binding in list(bindings):
                if id(binding.control) in targets:
                    binding.dispose()
