"""
JSON API for the expressway data.

Mounted on NiceGUI's FastAPI app by app.py:
- GET  /api/expressways          -> FeatureCollection
- POST /api/update-expressway    {"feature": {...}} -> replace by id / name
- POST /api/add-expressway       {"feature": {...}} -> append
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from expressway_map.errors import AmbiguousMatch, MalformedInput, NotFound, StoreCorrupted
from expressway_map.store import ExpresswayStore

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, details: str = None) -> JSONResponse:
    content = {'success': False, 'error': error}
    if details:
        content['details'] = details
    return JSONResponse(status_code=status_code, content=content)


def _extract_feature(payload: Any) -> Dict[str, Any]:
    feature = payload.get('feature') if isinstance(payload, dict) else None
    if not isinstance(feature, dict) or not isinstance(feature.get('properties'), dict):
        raise MalformedInput('Invalid feature data')
    return feature


def create_api_router(store: ExpresswayStore) -> APIRouter:
    """Build the API router around a store instance."""
    router = APIRouter(prefix='/api')

    @router.get('/expressways')
    def list_expressways():
        try:
            return store.load()
        except StoreCorrupted as e:
            return _error(500, 'Expressway data file is corrupted', str(e))
        except Exception as e:
            logger.error(f"Error reading expressways: {e}")
            return _error(500, 'Failed to read expressway data', str(e))

    @router.post('/update-expressway')
    def update_expressway(payload: Any = Body(...)):
        try:
            stored = store.replace_feature(_extract_feature(payload))
        except StoreCorrupted as e:
            return _error(500, 'Expressway data file is corrupted', str(e))
        except MalformedInput as e:
            return _error(400, str(e))
        except AmbiguousMatch as e:
            return _error(409, str(e))
        except NotFound as e:
            return _error(404, str(e))
        except Exception as e:
            logger.error(f"Error updating expressway: {e}")
            return _error(500, 'Failed to update expressway data', str(e))

        name = stored['properties']['name']
        return {
            'success': True,
            'message': 'Expressway updated successfully',
            'featureName': name,
            'id': stored['properties'].get('id'),
            'feature': stored,
        }

    @router.post('/add-expressway')
    def add_expressway(payload: Any = Body(...)):
        try:
            stored = store.append_feature(_extract_feature(payload))
        except StoreCorrupted as e:
            return _error(500, 'Expressway data file is corrupted', str(e))
        except MalformedInput as e:
            return _error(400, str(e))
        except Exception as e:
            logger.error(f"Error adding expressway: {e}")
            return _error(500, 'Failed to add expressway', str(e))

        return {
            'success': True,
            'message': 'Expressway added successfully',
            'featureName': stored['properties']['name'],
            'id': stored['properties'].get('id'),
            'feature': stored,
        }

    return router
