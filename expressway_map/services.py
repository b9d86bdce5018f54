"""
Feature service: the storage collaborator seen by the editor.

Both implementations expose the same three calls. LocalFeatureService
talks to the file store in-process; HttpFeatureService talks to the
JSON API of another running server.
"""

import logging
from typing import Any, Dict, List, Protocol, runtime_checkable

import requests

from expressway_map.errors import AmbiguousMatch, MalformedInput, NotFound, TransportError
from expressway_map.store import ExpresswayStore

logger = logging.getLogger(__name__)


@runtime_checkable
class FeatureService(Protocol):

    def list_features(self) -> List[Dict[str, Any]]:
        """Return every expressway feature (the source of truth for the map)."""
        ...

    def append_feature(self, feature: Dict[str, Any]) -> Dict[str, Any]:
        """Add a new feature. Returns the stored feature."""
        ...

    def replace_feature(self, feature: Dict[str, Any]) -> Dict[str, Any]:
        """Overwrite an existing feature. Raises NotFound when nothing matches."""
        ...


class LocalFeatureService:
    """FeatureService backed directly by an ExpresswayStore."""

    def __init__(self, store: ExpresswayStore):
        self.store = store

    def list_features(self) -> List[Dict[str, Any]]:
        return self.store.list_features()

    def append_feature(self, feature: Dict[str, Any]) -> Dict[str, Any]:
        return self.store.append_feature(feature)

    def replace_feature(self, feature: Dict[str, Any]) -> Dict[str, Any]:
        return self.store.replace_feature(feature)


class HttpFeatureService:
    """
    FeatureService speaking to the /api endpoints with requests.

    No timeout is set: a hung request keeps the UI in its "saving" state.
    """

    def __init__(self, base_url: str, session: requests.Session = None):
        self.base_url = base_url.rstrip('/')
        self._http = session or requests.Session()

    def list_features(self) -> List[Dict[str, Any]]:
        body = self._request('GET', '/api/expressways')
        return body.get('features', [])

    def append_feature(self, feature: Dict[str, Any]) -> Dict[str, Any]:
        body = self._request('POST', '/api/add-expressway', json={'feature': feature})
        return body.get('feature', feature)

    def replace_feature(self, feature: Dict[str, Any]) -> Dict[str, Any]:
        body = self._request('POST', '/api/update-expressway', json={'feature': feature})
        return body.get('feature', feature)

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._http.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise TransportError(str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.ok:
            return body

        message = body.get('error') or response.reason or f"HTTP {response.status_code}"
        if body.get('details'):
            message = f"{message}: {body['details']}"

        if response.status_code == 409:
            raise AmbiguousMatch(message)
        if response.status_code == 404:
            raise NotFound(message)
        if response.status_code == 400:
            raise MalformedInput(message)
        raise TransportError(message)
