"""Pure geometry operations used by the clipping workflow.

Geometries are shapely objects in EPSG:4326, so every distance and area
handled here is expressed in degrees (or square degrees). Nothing in this
module touches the database.
"""
import json
import math
from typing import Any, Dict, Optional, Union

from fastapi.logger import logger
from shapely.errors import GEOSException, ShapelyError
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon, mapping, shape
from shapely.geometry.base import BaseGeometry

from ..errors import GeometryError
from ..settings.globals import SIMPLIFY_TOLERANCE

METERS_PER_DEGREE = 111320
SQUARE_METERS_PER_HECTARE = 10000

PolygonalGeometry = Union[Polygon, MultiPolygon]


def validate_and_repair(geometry: BaseGeometry) -> Optional[BaseGeometry]:
    """Return the geometry if valid, a zero-buffer repair of it if that is
    valid, or None if it cannot be fixed."""
    try:
        if geometry.is_valid:
            return geometry

        logger.warning("Invalid geometry detected, attempting to fix...")
        repaired = geometry.buffer(0)
    except (GEOSException, ValueError) as e:
        logger.warning(f"Error in validate_and_repair: {e}")
        return None

    if repaired.is_empty or not repaired.is_valid:
        logger.warning("Unable to fix invalid geometry")
        return None

    return repaired


def intersects(geometry_a: BaseGeometry, geometry_b: BaseGeometry) -> bool:
    try:
        return geometry_a.intersects(geometry_b)
    except (GEOSException, ValueError) as e:
        logger.warning(f"Error checking intersection: {e}")
        return False


def difference(
    geometry_a: BaseGeometry, geometry_b: BaseGeometry
) -> Optional[PolygonalGeometry]:
    """Subtract geometry_b from geometry_a.

    Returns None when nothing polygonal and valid is left.
    """
    try:
        result = _polygonal(geometry_a.difference(geometry_b))
    except (GEOSException, ValueError) as e:
        logger.warning(f"Error calculating difference: {e}")
        return None

    if result is None or result.is_empty or not result.is_valid:
        return None

    return result


def buffer(geometry: BaseGeometry, distance: float) -> Optional[BaseGeometry]:
    try:
        buffered = geometry.buffer(distance)
    except (GEOSException, ValueError) as e:
        logger.warning(f"Error buffering geometry: {e}")
        return None

    if buffered.is_empty or not buffered.is_valid:
        return None

    return buffered


def area(geometry: BaseGeometry) -> float:
    """Planar area in square degrees."""
    return geometry.area


def simplify(
    geometry: PolygonalGeometry, tolerance: float = SIMPLIFY_TOLERANCE
) -> PolygonalGeometry:
    """Drop the dense vertices a buffer arc leaves behind along the clip edge.

    Falls back to the input if the simplified shape is invalid or larger.
    """
    try:
        simplified = geometry.simplify(tolerance, preserve_topology=True)
    except (GEOSException, ValueError) as e:
        logger.warning(f"Could not simplify geometry, returning original: {e}")
        return geometry

    if (
        simplified.is_empty
        or not simplified.is_valid
        or simplified.area > geometry.area
        or not isinstance(simplified, (Polygon, MultiPolygon))
    ):
        return geometry

    return simplified


def square_degrees_to_hectares(square_degrees: float, latitude: float) -> float:
    """Equirectangular approximation, good enough at site scale."""
    latitude_factor = math.cos(math.radians(latitude))
    square_meters = square_degrees * METERS_PER_DEGREE * METERS_PER_DEGREE * latitude_factor
    return square_meters / SQUARE_METERS_PER_HECTARE


def hectares(
    geometry: BaseGeometry, latitude: Optional[float] = None
) -> float:
    """Area of the geometry in hectares.

    The latitude correction uses the geometry centroid unless a latitude is
    given, which lets before and after shapes share one factor.
    """
    if geometry.is_empty:
        return 0.0
    if latitude is None:
        latitude = geometry.centroid.y
    return square_degrees_to_hectares(area(geometry), latitude)


def from_geojson(geojson: Union[str, Dict[str, Any]]) -> BaseGeometry:
    if isinstance(geojson, str):
        geojson = json.loads(geojson)
    try:
        return shape(geojson)
    except (ShapelyError, ValueError, KeyError, TypeError, AttributeError) as e:
        raise GeometryError(f"Cannot read geometry: {e}")


def to_geojson(geometry: BaseGeometry) -> Dict[str, Any]:
    geojson = mapping(geometry)
    # mapping() returns tuples, GeoJSON consumers expect lists
    return json.loads(json.dumps(geojson))


def _polygonal(geometry: BaseGeometry) -> Optional[PolygonalGeometry]:
    if isinstance(geometry, (Polygon, MultiPolygon)):
        return geometry

    if isinstance(geometry, GeometryCollection):
        polygons = []
        for part in geometry.geoms:
            if isinstance(part, Polygon):
                polygons.append(part)
            elif isinstance(part, MultiPolygon):
                polygons.extend(part.geoms)
        polygons = [p for p in polygons if not p.is_empty]
        if len(polygons) == 1:
            return polygons[0]
        if polygons:
            return MultiPolygon(polygons)

    return None
