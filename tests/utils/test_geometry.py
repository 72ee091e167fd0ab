import math

import pytest
from shapely.geometry import LineString, MultiPolygon, Point, Polygon, box

from clipping_api.errors import GeometryError
from clipping_api.utils.geometry import (
    area,
    buffer,
    difference,
    from_geojson,
    hectares,
    intersects,
    simplify,
    square_degrees_to_hectares,
    to_geojson,
    validate_and_repair,
)

BOWTIE = Polygon([(0, 0), (1, 1), (1, 0), (0, 1), (0, 0)])


def test_validate_and_repair_keeps_valid_geometry():
    square = box(0, 0, 1, 1)
    assert validate_and_repair(square) is square


def test_validate_and_repair_fixes_self_intersection():
    assert not BOWTIE.is_valid

    repaired = validate_and_repair(BOWTIE)

    assert repaired is not None
    assert repaired.is_valid
    assert not repaired.is_empty


def test_validate_and_repair_gives_up_on_degenerate_geometry():
    flat = Polygon([(0, 0), (1, 0), (2, 0), (0, 0)])
    assert validate_and_repair(flat) is None


def test_intersects():
    assert intersects(box(0, 0, 1, 1), box(0.5, 0.5, 2, 2))
    assert not intersects(box(0, 0, 1, 1), box(2, 2, 3, 3))


def test_difference_removes_overlap():
    result = difference(box(0, 0, 2, 2), box(1, 0, 3, 2))

    assert result is not None
    assert result.equals(box(0, 0, 1, 2))


def test_difference_of_covered_geometry_is_none():
    assert difference(box(0, 0, 1, 1), box(-1, -1, 2, 2)) is None


def test_difference_keeps_only_polygonal_parts():
    result = difference(box(0, 0, 4, 1), box(1, -1, 2, 2))

    assert isinstance(result, MultiPolygon)
    assert len(result.geoms) == 2


def test_buffer_grows_geometry():
    square = box(0, 0, 1, 1)
    buffered = buffer(square, 0.000001)

    assert buffered is not None
    assert area(buffered) > area(square)


def test_buffer_of_line_by_zero_is_none():
    assert buffer(LineString([(0, 0), (1, 1)]), 0) is None


def test_square_degrees_to_hectares_at_equator():
    # one square degree at the equator is 111.32 km squared
    assert square_degrees_to_hectares(1, 0) == pytest.approx(111320 * 111320 / 10000)


def test_square_degrees_to_hectares_shrinks_with_latitude():
    at_equator = square_degrees_to_hectares(1, 0)
    assert square_degrees_to_hectares(1, 60) == pytest.approx(at_equator * 0.5)


def test_hectares_uses_centroid_latitude():
    square = box(0, 59.99, 0.01, 60.01)
    expected = area(square) * 111320 * 111320 * math.cos(math.radians(60)) / 10000
    assert hectares(square) == pytest.approx(expected)


def test_hectares_with_given_latitude():
    square = box(0, 59.99, 0.01, 60.01)
    assert hectares(square, 0) == pytest.approx(square_degrees_to_hectares(area(square), 0))


def test_simplify_drops_buffer_arc_vertices():
    clipped = difference(box(0, 0, 0.003, 0.003), buffer(box(0.002, 0, 0.004, 0.002), 0.000001))
    simplified = simplify(clipped)

    assert simplified.is_valid
    assert area(simplified) <= area(clipped)
    assert len(simplified.exterior.coords) <= len(clipped.exterior.coords)


def test_geojson_conversion():
    square = box(0, 0, 1, 1)
    geojson = to_geojson(square)

    assert geojson["type"] == "Polygon"
    assert isinstance(geojson["coordinates"][0][0], list)
    assert from_geojson(geojson).equals(square)


def test_from_geojson_reads_strings():
    assert from_geojson('{"type": "Point", "coordinates": [1, 2]}').equals(Point(1, 2))


def test_from_geojson_rejects_garbage():
    with pytest.raises(GeometryError):
        from_geojson({"type": "Polygon", "coordinates": "nope"})
