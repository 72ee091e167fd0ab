import pytest
from shapely.geometry import Polygon, box

from clipping_api.models.pydantic.polygons import OverlapPair
from clipping_api.utils.geometry import area, intersects
from tests.fakes import add_neighbours


def pair(first: str, second: str) -> OverlapPair:
    return OverlapPair(polygon_id=first, counterpart_id=second, percentage=1.0, area_ha=0.01)


def test_only_the_larger_polygon_is_clipped(clipper):
    large, small = box(0, 0, 2, 2), box(1.5, 0, 2.5, 1)

    arena = clipper.clip_pairs([pair("s", "l")], {"l": large, "s": small})

    assert list(arena) == ["l"]
    assert area(arena["l"]) < area(large)
    assert not intersects(arena["l"], small)


def test_equal_areas_clip_the_smaller_id(clipper):
    first, second = box(0, 0, 1, 1), box(0.5, 0, 1.5, 1)

    arena = clipper.clip_pairs([pair("b", "a")], {"a": first, "b": second})

    assert list(arena) == ["a"]


def test_pairs_are_processed_once(clipper):
    seen = set()
    geometries = {"a": box(0, 0, 2, 2), "b": box(1.5, 0, 2.5, 1)}

    arena = clipper.clip_pairs([pair("a", "b"), pair("b", "a")], geometries, seen=seen)
    again = clipper.clip_pairs([pair("a", "b")], geometries, seen=seen)

    assert seen == {("a", "b")}
    assert list(arena) == ["a"]
    assert again == {}


def test_clipping_clipped_output_again_changes_nothing(clipper):
    geometries = {"a": box(0, 0, 2, 2), "b": box(1.5, 0, 2.5, 1)}
    arena = clipper.clip_pairs([pair("a", "b")], geometries)

    rerun = clipper.clip_pairs([pair("a", "b")], {**geometries, **arena})

    assert rerun == {}


def test_chained_clips_build_on_previous_replacements(clipper):
    geometries = {
        "a": box(0, 0, 3, 3),
        "b": box(2.9, 0, 4, 1),
        "c": box(2.5, 2.5, 3.5, 3.5),
    }

    arena = clipper.clip_pairs([pair("a", "b"), pair("a", "c")], geometries)

    assert list(arena) == ["a"]
    assert not intersects(arena["a"], geometries["b"])
    assert not intersects(arena["a"], geometries["c"])


def test_missing_geometry_skips_pair(clipper, logger):
    arena = clipper.clip_pairs([pair("a", "missing")], {"a": box(0, 0, 1, 1)})

    assert arena == {}
    logger.warning.assert_called()


def test_invalid_geometry_is_repaired_before_clipping(clipper):
    bowtie = Polygon([(0, 0), (2, 2), (2, 0), (0, 2), (0, 0)])
    small = box(0.9, 0.9, 1.1, 1.1)

    arena = clipper.clip_pairs([pair("a", "b")], {"a": bowtie, "b": small})

    assert arena["a"].is_valid


def test_kernel_errors_are_logged_and_skipped(clipper, logger, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("GEOS exploded")

    monkeypatch.setattr("clipping_api.tasks.clipping.clipper.difference", broken)
    geometries = {
        "a": box(0, 0, 2, 2),
        "b": box(1.5, 0, 2.5, 1),
    }

    assert clipper.clip_pairs([pair("a", "b")], geometries) == {}
    logger.warning.assert_called()


@pytest.mark.asyncio
async def test_clip_returns_replacements_for_fixable_pairs(
    clipper, geometry_store, criteria_store, site_polygon_store
):
    large, small = add_neighbours(geometry_store, criteria_store, site_polygon_store)

    arena = await clipper.clip([large, small])

    assert list(arena) == [large]
    assert area(arena[large]) < area(geometry_store.geometries[large])
    assert not intersects(arena[large], geometry_store.geometries[small])


@pytest.mark.asyncio
async def test_clip_without_fixable_pairs_loads_nothing(
    clipper, geometry_store, criteria_store, site_polygon_store
):
    add_neighbours(geometry_store, criteria_store, site_polygon_store, percentage=4.0)

    assert await clipper.clip(["large", "small"]) == {}
    assert geometry_store.queries == []
