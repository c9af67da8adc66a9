"""Propagation of collection changes to the surfaces of the current page."""

from __future__ import annotations

import logging
from typing import Iterable

from .models import CollectionCounts, CollectionName
from .views import CountSurface, MovieCard, MovieGrid, PageView

logger = logging.getLogger(__name__)


class ViewSyncBroadcaster:
    """Re-renders count surfaces and applies scoped removal after a mutation.

    The broadcaster keeps no subscriptions: it is handed the surfaces of one
    page at construction and every :meth:`broadcast` is a full, idempotent
    re-render of them.
    """

    def __init__(
        self,
        surfaces: Iterable[CountSurface],
        grid: MovieGrid | None = None,
    ) -> None:
        self._surfaces = tuple(surfaces)
        self._grid = grid

    @classmethod
    def for_page(cls, page: PageView) -> "ViewSyncBroadcaster":
        return cls(page.count_surfaces(), page.grid)

    @property
    def surfaces(self) -> tuple[CountSurface, ...]:
        return self._surfaces

    def broadcast(self, counts: CollectionCounts) -> None:
        for surface in self._surfaces:
            surface.render(counts)

    def remove_scoped(self, collection: CollectionName, movie_id: int) -> MovieCard | None:
        """Drop ``movie_id``'s card if the grid lists ``collection``.

        Grids scoped to another collection (or to none) are left alone. When
        the last card goes, the grid switches to its empty state. Returns
        the removed card, if any.
        """

        grid = self._grid
        if grid is None or grid.scope != collection:
            return None
        card = grid.remove_card(movie_id)
        if card is None:
            return None
        logger.debug("Removed movie %s from the %s grid", movie_id, collection)
        if grid.is_empty():
            grid.show_empty_state()
        return card
