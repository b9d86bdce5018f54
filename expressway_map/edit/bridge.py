"""
Persistence Bridge - hands finished edits to the feature service.

After a successful save the expressway layer is reloaded from the service
(a full re-fetch, not an in-place patch) and the edit session is closed.
On failure the session stays open so the user can retry.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from nicegui import run

from expressway_map.edit.controller import EditController
from expressway_map.errors import ExpresswayMapError
from expressway_map.features import Feature

logger = logging.getLogger(__name__)


class PersistenceBridge:
    """
    Submits features to a FeatureService and refreshes the map afterwards.

    Args:
        service: FeatureService (append_feature / replace_feature)
        controller: EditController owning the edit session
        status: StatusChannel for user-facing messages
        refresh: Coroutine function reloading the expressway layer
        io_bound: Runs blocking service calls off the event loop
            (defaults to nicegui.run.io_bound)
    """

    def __init__(self, service: Any, controller: EditController, status: Any,
                 refresh: Callable[[], Awaitable[None]],
                 io_bound: Optional[Callable[..., Awaitable[Any]]] = None):
        self._service = service
        self._controller = controller
        self._status = status
        self._refresh = refresh
        self._io_bound = io_bound or run.io_bound

    async def save(self) -> bool:
        """Persist the active edit session. Returns True when stored."""
        session = self._controller.session
        if session is None:
            self._status.show('Select an expressway to edit first', 'info')
            return False

        # Stable across retries of the same session
        session.feature.ensure_id()
        feature = session.to_feature()

        self._status.show(f"Saving '{feature.name}'...", 'info')
        try:
            await self._io_bound(self._service.replace_feature, feature.to_geojson())
        except ExpresswayMapError as e:
            logger.error(f"Saving '{feature.name}' failed: {e}")
            self._status.show(f'Save failed: {e}', 'error')
            return False

        self._status.show(f"Saved '{feature.name}'", 'success')
        await self._reload()

        # The user may have picked another feature while the request was in flight
        if self._controller.session is session:
            self._controller.exit()
        return True

    async def add_new(self, feature: Feature) -> bool:
        """
        Store a newly drawn feature.

        The layer is reloaded whether or not the request succeeded.
        """
        self._status.show(f"Adding '{feature.name}'...", 'info')
        try:
            await self._io_bound(self._service.append_feature, feature.to_geojson())
        except ExpresswayMapError as e:
            logger.error(f"Adding '{feature.name}' failed: {e}")
            self._status.show(f'Add failed: {e}', 'error')
            await self._reload()
            return False

        self._status.show(f"Added '{feature.name}'", 'success')
        self._controller.cancel_drawing()
        await self._reload()
        return True

    async def _reload(self):
        try:
            await self._refresh()
        except ExpresswayMapError as e:
            logger.error(f"Reloading expressways failed: {e}")
            self._status.show(f'Could not reload expressways: {e}', 'error')
