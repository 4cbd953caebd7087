"""
Domain models package.

This package contains domain models for the application.
"""

from carte.domain.features import (
    GEOMETRY_TYPES,
    SOURCE_REFERENCE,
    SOURCE_USER_SELECTION,
    STYLE_ORTHO,
    STYLE_VECTOR,
    Feature,
    FeatureCollection,
    InvalidFeatureCollectionError,
    InvalidFeatureError,
    ViewportState,
)

__all__ = [
    'GEOMETRY_TYPES',
    'SOURCE_REFERENCE',
    'SOURCE_USER_SELECTION',
    'STYLE_ORTHO',
    'STYLE_VECTOR',
    'Feature',
    'FeatureCollection',
    'InvalidFeatureCollectionError',
    'InvalidFeatureError',
    'ViewportState',
]
