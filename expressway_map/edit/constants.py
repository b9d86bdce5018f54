"""
Geometry editor constants.

The colours are also written into the overlay's injected script and CSS,
so a change here reaches the browser on the next page load.
"""

# A line needs two endpoints; removals below this are rejected
MIN_VERTICES = 2

# Name of the static expressway layer in the map display
EXPRESSWAY_LAYER = 'expressways'
PROVINCE_LAYER = 'provinces'

# Opacity of the static expressway layer while a feature is being edited
DIM_OPACITY = 0.25
FULL_OPACITY = 1.0

# Distance in screen pixels within which a click "hits" a line
LINE_HIT_TOLERANCE = 8

# Web Mercator tile size used to convert pixels to degrees
TILE_SIZE = 256

# Line colour per expressway status
STATUS_COLORS = {
    'operational': '#27ae60',
    'construction': '#f39c12',
    'planning': '#8e44ad',
}
DEFAULT_LINE_COLOR = '#7f8c8d'

EDIT_LINE_COLOR = '#e74c3c'
DRAFT_LINE_COLOR = '#2980b9'
