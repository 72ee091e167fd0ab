import pytest

from clipping_api.models.pydantic.polygons import parse_observations
from clipping_api.tasks.clipping.classifier import OverlapClassifier


def test_parse_observations_reads_both_key_styles():
    observations = parse_observations(
        [
            {"poly_uuid": "b", "percentage": 1.0, "intersection_area": 0.01},
            {"polyUuid": "c", "percentage": 2.0, "intersectionArea": 0.02},
        ]
    )

    assert [o.counterpart for o in observations] == ["b", "c"]
    assert [o.area_ha for o in observations] == [0.01, 0.02]


def test_parse_observations_drops_malformed_payloads():
    assert parse_observations(None) == []
    assert parse_observations({"poly_uuid": "b"}) == []
    assert (
        parse_observations(
            [
                {"poly_uuid": None, "percentage": 1.0, "intersection_area": 0.01},
                "not a dict",
                {"poly_uuid": "b", "percentage": 1.0},
            ]
        )
        == []
    )


@pytest.mark.asyncio
async def test_classify_keeps_pairs_within_thresholds(classifier, criteria_store):
    criteria_store.add_observation("a", "b", 3.5, 0.1)
    criteria_store.add_observation("a", "c", 3.6, 0.05)
    criteria_store.add_observation("a", "d", 1.0, 0.11)
    criteria_store.add_observation("a", "e", 0.0, 0.0)

    pairs = await classifier.classify(["a"])

    assert [(p.polygon_id, p.counterpart_id) for p in pairs] == [("a", "b"), ("a", "e")]


@pytest.mark.asyncio
async def test_classify_deduplicates_reversed_pairs(classifier, criteria_store):
    criteria_store.add_overlap("a", "b", 2.0, 0.05)

    pairs = await classifier.classify(["b", "a"])

    assert len(pairs) == 1
    # first appearance wins, and input order decides which record comes first
    assert (pairs[0].polygon_id, pairs[0].counterpart_id) == ("b", "a")
    assert pairs[0].key == ("a", "b")


@pytest.mark.asyncio
async def test_classify_is_idempotent(classifier, criteria_store):
    criteria_store.add_overlap("a", "b", 2.0, 0.05)
    criteria_store.add_overlap("b", "c", 3.0, 0.08)
    criteria_store.add_overlap("c", "d", 4.0, 0.08)

    first = await classifier.classify(["a", "b", "c", "d"])
    second = await classifier.classify(["a", "b", "c", "d"])

    assert first == second
    assert [p.key for p in first] == [("a", "b"), ("b", "c")]


@pytest.mark.asyncio
async def test_classify_skips_valid_criteria(classifier, criteria_store):
    criteria_store.add_overlap("a", "b", 2.0, 0.05)
    criteria_store.valid["a"] = True
    criteria_store.valid["b"] = True

    assert await classifier.classify(["a", "b"]) == []


@pytest.mark.asyncio
async def test_classify_fetches_in_batches(criteria_store, logger):
    classifier = OverlapClassifier(criteria_store, logger=logger, batch_size=20)
    ids = [f"p{i}" for i in range(45)]

    await classifier.classify(ids + ids[:5])

    assert [len(q) for q in criteria_store.queries] == [20, 20, 5]


@pytest.mark.asyncio
async def test_classify_without_ids_does_not_query(classifier, criteria_store):
    assert await classifier.classify([]) == []
    assert criteria_store.queries == []


@pytest.mark.asyncio
async def test_fixable_polygon_ids_include_counterparts(classifier, criteria_store):
    criteria_store.add_observation("a", "x", 1.0, 0.01)
    criteria_store.add_observation("b", "a", 1.0, 0.01)
    criteria_store.add_observation("c", "y", 10.0, 0.01)

    assert await classifier.fixable_polygon_ids(["a", "b", "c"]) == ["a", "x", "b"]
