import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from expressway_map.errors import AmbiguousMatch, NotFound, StoreCorrupted
from expressway_map.features import Feature, feature_collection, new_feature_id

logger = logging.getLogger(__name__)


class ExpresswayStore:
    """
    Flat-file store for the expressway FeatureCollection.

    Structure:
    - One GeoJSON file (FeatureCollection) holding every expressway.

    Every write rewrites the whole file. The in-process lock serialises
    read-modify-write cycles of this process only; separate processes
    writing the same file are last-write-wins.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # --- File I/O Helpers ---

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return feature_collection([])
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Cannot parse {self.path}: {e}")
            raise StoreCorrupted(f"{self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("features"), list):
            logger.error(f"{self.path} has no 'features' list")
            raise StoreCorrupted(f"{self.path} is not a GeoJSON FeatureCollection")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    # --- Queries ---

    def load(self) -> Dict[str, Any]:
        """Return the FeatureCollection, creating an empty file if none exists."""
        with self._lock:
            if not self.path.exists():
                self._write(feature_collection([]))
            return self._read()

    def list_features(self) -> List[Dict[str, Any]]:
        return self.load()["features"]

    # --- Mutations ---

    def append_feature(self, feature_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and append a new feature. Assigns an id if missing.

        Returns:
            The stored feature dict.
        """
        feature = Feature.from_geojson(feature_data)
        feature.ensure_id()
        stored = feature.to_geojson()

        with self._lock:
            data = self._read()
            data["features"].append(stored)
            self._write(data)

        logger.info(f"Added expressway '{feature.name}' ({feature.id})")
        return stored

    def replace_feature(self, feature_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overwrite an existing feature.

        Matching:
        - by id when the incoming feature has one;
        - otherwise, or when no stored feature carries that id, by name
          among the candidates (stored features without an id, or all
          features if the incoming one has no id).

        Raises:
            MalformedInput: the incoming feature is invalid
            StoreCorrupted: the stored file is not a readable FeatureCollection
            NotFound: nothing matches
            AmbiguousMatch: the name fallback matches several features
        """
        feature = Feature.from_geojson(feature_data)

        with self._lock:
            data = self._read()
            features = data["features"]
            index = self._find_index(features, feature)

            # Keep the stored id when matched by name; otherwise mint one
            stored_id = _feature_id(features[index])
            if not feature.id:
                feature.id = stored_id or new_feature_id()

            stored = feature.to_geojson()
            features[index] = stored
            self._write(data)

        logger.info(f"Updated expressway '{feature.name}' ({feature.id})")
        return stored

    @staticmethod
    def _find_index(features: List[Dict[str, Any]], feature: Feature) -> int:
        if feature.id:
            for i, existing in enumerate(features):
                if _feature_id(existing) == feature.id:
                    return i
            candidates = [i for i, f in enumerate(features) if not _feature_id(f)]
        else:
            candidates = list(range(len(features)))

        matches = [i for i in candidates if _feature_name(features[i]) == feature.name]
        if not matches:
            raise NotFound(f"Feature '{feature.name}' not found in GeoJSON")
        if len(matches) > 1:
            raise AmbiguousMatch(
                f"{len(matches)} features are named '{feature.name}'; save by id instead"
            )
        logger.warning(f"Matched '{feature.name}' by name; the stored feature had no id")
        return matches[0]

    def seed_demo_data(self) -> bool:
        """
        Write a small sample collection if the store file does not exist yet.

        Returns:
            True if sample data was written.
        """
        with self._lock:
            if self.path.exists():
                return False
            samples = [
                Feature(name="Cao tốc Hà Nội - Hải Phòng", status="operational",
                        coordinates=[[105.8542, 21.0285], [106.1000, 20.9500],
                                     [106.4000, 20.8900], [106.6881, 20.8449]]),
                Feature(name="Cao tốc TP.HCM - Long Thành - Dầu Giây", status="operational",
                        coordinates=[[106.7500, 10.7900], [106.9500, 10.7900],
                                     [107.2300, 10.9500]]),
                Feature(name="Cao tốc Bắc - Nam (Cam Lộ - La Sơn)", status="construction",
                        coordinates=[[107.0500, 16.8000], [107.3500, 16.5500],
                                     [107.6000, 16.3000]]),
            ]
            for sample in samples:
                sample.ensure_id()
            self._write(feature_collection([s.to_geojson() for s in samples]))
        logger.info(f"Seeded {len(samples)} sample expressways into {self.path}")
        return True


def _feature_id(feature: Dict[str, Any]) -> Optional[str]:
    raw = (feature.get("properties") or {}).get("id")
    return str(raw) if raw not in (None, "") else None


def _feature_name(feature: Dict[str, Any]) -> Optional[str]:
    return (feature.get("properties") or {}).get("name")
