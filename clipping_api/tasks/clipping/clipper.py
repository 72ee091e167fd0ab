"""Pairwise clipping of overlapping polygons.

For every fixable pair the larger polygon gives way: the smaller polygon,
grown by a tiny buffer, is cut out of it. The smaller polygon is never
modified by its own pair. Replacements are kept in an arena keyed by polygon
id so that a polygon taking part in several pairs is clipped step by step.
"""
from typing import Dict, List, Optional, Sequence, Set, Tuple

from fastapi.logger import logger as default_logger
from shapely.geometry.base import BaseGeometry

from ...models.pydantic.polygons import GeometryRecord, OverlapPair
from ...settings.globals import BATCH_SIZE, BUFFER_DISTANCE
from ...utils.geometry import (
    area,
    buffer,
    difference,
    intersects,
    simplify,
    validate_and_repair,
)
from .. import chunked, unique
from .classifier import OverlapClassifier
from .stores import GeometryStore

Arena = Dict[str, BaseGeometry]


class PolygonClipper:
    def __init__(
        self,
        classifier: OverlapClassifier,
        geometry_store: GeometryStore,
        logger=default_logger,
        batch_size: int = BATCH_SIZE,
        buffer_distance: float = BUFFER_DISTANCE,
    ):
        self.classifier = classifier
        self.geometry_store = geometry_store
        self.logger = logger
        self.batch_size = batch_size
        self.buffer_distance = buffer_distance

    async def clip(self, polygon_ids: Sequence[str]) -> Arena:
        """Replacement geometries for every polygon changed by clipping the
        fixable overlaps of the given polygons."""
        arena, _ = await self.evaluate(polygon_ids)
        return arena

    async def evaluate(
        self, polygon_ids: Sequence[str]
    ) -> Tuple[Arena, Dict[str, GeometryRecord]]:
        """Like clip, also returning the loaded original geometry records."""
        pairs = await self.classifier.classify(polygon_ids)
        if not pairs:
            self.logger.info("No fixable overlap pairs found")
            return dict(), dict()

        records = await self.load_geometries(pairs)
        originals = {uuid: record.geometry for uuid, record in records.items()}
        arena = self.clip_pairs(pairs, originals)

        self.logger.info(f"Clipped {len(arena)} polygons from {len(pairs)} pairs")
        return {uuid: simplify(geometry) for uuid, geometry in arena.items()}, records

    async def load_geometries(
        self,
        pairs: List[OverlapPair],
        known: Optional[Dict[str, GeometryRecord]] = None,
    ) -> Dict[str, GeometryRecord]:
        """Fetch the geometries of all pair members not already known."""
        known = known or dict()
        members: List[str] = list()
        for pair in pairs:
            members.extend((pair.polygon_id, pair.counterpart_id))
        missing = [uuid for uuid in unique(members) if uuid not in known]

        records: Dict[str, GeometryRecord] = dict()
        for chunk in chunked(missing, self.batch_size):
            records.update(await self.geometry_store.get_geometries(chunk))
        return records

    def clip_pairs(
        self,
        pairs: List[OverlapPair],
        originals: Dict[str, BaseGeometry],
        arena: Optional[Arena] = None,
        seen: Optional[Set[Tuple[str, str]]] = None,
    ) -> Arena:
        """Clip pairs in order, updating and returning the arena.

        Pairs whose key is in seen are skipped; processed keys are added to
        it so repeated calls within one run handle each pair once.
        """
        arena = arena if arena is not None else dict()
        seen = seen if seen is not None else set()

        for pair in pairs:
            if pair.key in seen:
                continue
            seen.add(pair.key)
            try:
                self._clip_pair(pair, originals, arena)
            except Exception as e:
                self.logger.warning(
                    f"Error clipping pair {pair.polygon_id} <-> {pair.counterpart_id}: {e}"
                )
        return arena

    def _current(
        self, uuid: str, originals: Dict[str, BaseGeometry], arena: Arena
    ) -> Optional[BaseGeometry]:
        geometry = arena.get(uuid, originals.get(uuid))
        if geometry is None:
            return None
        return validate_and_repair(geometry)

    def _clip_pair(
        self, pair: OverlapPair, originals: Dict[str, BaseGeometry], arena: Arena
    ) -> None:
        geometry_a = self._current(pair.polygon_id, originals, arena)
        geometry_b = self._current(pair.counterpart_id, originals, arena)
        if geometry_a is None or geometry_b is None:
            self.logger.warning(
                f"Polygon data not found for pair: {pair.polygon_id} <-> {pair.counterpart_id}"
            )
            return

        if not intersects(geometry_a, geometry_b):
            return

        larger_id, larger, smaller = self._order(
            (pair.polygon_id, geometry_a), (pair.counterpart_id, geometry_b)
        )

        buffered = buffer(smaller, self.buffer_distance)
        if buffered is None:
            self.logger.warning(f"Could not buffer counterpart of {larger_id}")
            return

        clipped = difference(larger, buffered)
        if clipped is None:
            self.logger.warning(f"No clipped geometry returned for {larger_id}")
            return

        arena[larger_id] = clipped

    @staticmethod
    def _order(
        first: Tuple[str, BaseGeometry], second: Tuple[str, BaseGeometry]
    ) -> Tuple[str, BaseGeometry, BaseGeometry]:
        """Return the larger polygon id, the larger and the smaller shape.

        On equal area the lexicographically smaller id counts as larger.
        """
        (id_a, geometry_a), (id_b, geometry_b) = first, second
        area_a, area_b = area(geometry_a), area(geometry_b)
        if area_a > area_b or (area_a == area_b and id_a < id_b):
            return id_a, geometry_a, geometry_b
        return id_b, geometry_b, geometry_a
