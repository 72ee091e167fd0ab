"""Turn clipped geometries into new site polygon versions.

A run happens inside one read committed transaction. Overlaps are evaluated
chunk by chunk against live criteria, then each clipped polygon gets a new
geometry and a new active site polygon version. A failure on a single
polygon only rolls back its own savepoint.
"""
from typing import (
    Any,
    AsyncContextManager,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from fastapi.logger import logger as default_logger
from shapely.geometry.base import BaseGeometry

from ...models.pydantic.polygons import (
    Actor,
    BatchMeta,
    ClippedVersion,
    GeometryRecord,
    OverlapPair,
)
from ...settings.globals import BATCH_SIZE
from ...utils.geometry import hectares, intersects, simplify, validate_and_repair
from .. import chunked, unique
from .classifier import OverlapClassifier
from .clipper import Arena, PolygonClipper
from .stores import CriteriaStore, GeometryStore, SitePolygonStore

ProgressCallback = Callable[[int, int], Awaitable[Any]]
TransactionFactory = Callable[[], AsyncContextManager]


def change_reason(original_area: float, new_area: float) -> str:
    return (
        f"Clipped due to overlap, area reduced from "
        f"{original_area:.4f}ha to {new_area:.4f}ha"
    )


class ClippingWorkflow:
    def __init__(
        self,
        classifier: OverlapClassifier,
        clipper: PolygonClipper,
        geometry_store: GeometryStore,
        criteria_store: CriteriaStore,
        site_polygon_store: SitePolygonStore,
        transaction: TransactionFactory,
        logger=default_logger,
        batch_size: int = BATCH_SIZE,
    ):
        self.classifier = classifier
        self.clipper = clipper
        self.geometry_store = geometry_store
        self.criteria_store = criteria_store
        self.site_polygon_store = site_polygon_store
        self.transaction = transaction
        self.logger = logger
        self.batch_size = batch_size

    async def clip_and_version(
        self,
        polygon_ids: Sequence[str],
        actor: Actor,
        batch_meta: Optional[BatchMeta] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> List[ClippedVersion]:
        ids = unique(polygon_ids)
        if not ids:
            self.logger.warning("No polygons provided for clipping and versioning")
            return list()

        source = batch_meta.source if batch_meta else "unknown"
        self.logger.info(
            f"Clipping {len(ids)} polygons for user {actor.user_id} (source: {source})"
        )

        async with self.transaction():
            arena, records, pairs = await self._evaluate(ids, progress)
            if not arena:
                self.logger.info("No fixable overlaps found for the provided polygons")
                return list()

            results = await self._persist(arena, records, pairs, actor)

        self.logger.info(f"Successfully created {len(results)} polygon versions")
        return results

    async def _evaluate(
        self, ids: List[str], progress: Optional[ProgressCallback]
    ) -> Tuple[Arena, Dict[str, GeometryRecord], List[OverlapPair]]:
        arena: Arena = dict()
        seen: Set[Tuple[str, str]] = set()
        records: Dict[str, GeometryRecord] = dict()
        processed_pairs: List[OverlapPair] = list()
        processed = 0

        for chunk in chunked(ids, self.batch_size):
            pairs = [
                pair
                for pair in await self.classifier.classify(chunk)
                if pair.key not in seen
            ]
            records.update(await self.clipper.load_geometries(pairs, records))
            originals = {uuid: record.geometry for uuid, record in records.items()}
            self.clipper.clip_pairs(pairs, originals, arena, seen)
            processed_pairs.extend(pairs)

            processed += len(chunk)
            if progress is not None:
                await progress(processed, len(ids))

        arena = {uuid: simplify(geometry) for uuid, geometry in arena.items()}
        return arena, records, processed_pairs

    async def _persist(
        self,
        arena: Arena,
        records: Dict[str, GeometryRecord],
        pairs: List[OverlapPair],
        actor: Actor,
    ) -> List[ClippedVersion]:
        results: List[ClippedVersion] = list()
        versioned: Set[str] = set()

        for chunk in chunked(list(arena), self.batch_size):
            for polygon_id in chunk:
                try:
                    async with self.transaction():
                        version = await self._version_polygon(
                            polygon_id, arena[polygon_id], records[polygon_id], actor
                        )
                except Exception as e:
                    self.logger.error(
                        f"Failed to create version for polygon {polygon_id}: {e}"
                    )
                    continue
                if version is not None:
                    results.append(version)
                    versioned.add(polygon_id)

        for counterpart_id, clipped_ids in self._resolved_observations(
            arena, records, pairs, versioned
        ).items():
            await self.criteria_store.remove_observations(counterpart_id, clipped_ids)

        return results

    async def _version_polygon(
        self,
        polygon_id: str,
        geometry: BaseGeometry,
        record: GeometryRecord,
        actor: Actor,
    ) -> Optional[ClippedVersion]:
        base = await self.site_polygon_store.get_active_site_polygon(
            polygon_id, for_update=True
        )
        if base is None:
            self.logger.warning(
                f"No active site polygon found for polygon UUID {polygon_id}"
            )
            return None

        original = validate_and_repair(record.geometry) or record.geometry
        # Same latitude factor before and after, so the delta is pure clipping
        latitude = original.centroid.y
        original_area = hectares(original, latitude)
        new_area = hectares(geometry, latitude)
        if new_area > original_area:
            self.logger.warning(
                f"Clipped polygon {polygon_id} grew from {original_area} to {new_area}ha, skipping"
            )
            return None

        geometry_id = await self.geometry_store.create_geometry(
            geometry, actor.user_id
        )
        version = await self.site_polygon_store.create_version(
            base,
            geometry_id,
            new_area,
            actor,
            change_reason(original_area, new_area),
        )
        await self.criteria_store.delete_criteria(polygon_id)

        self.logger.info(f"Created version {version.uuid} for polygon {base.uuid}")
        return ClippedVersion(
            id=version.uuid,
            poly_name=version.poly_name,
            original_area=original_area,
            new_area=new_area,
            area_removed=original_area - new_area,
        )

    @staticmethod
    def _resolved_observations(
        arena: Arena,
        records: Dict[str, GeometryRecord],
        pairs: List[OverlapPair],
        versioned: Set[str],
    ) -> Dict[str, List[str]]:
        """Counterparts whose overlap with a versioned polygon is gone,
        mapped to the versioned polygons they should forget."""
        resolved: Dict[str, List[str]] = dict()
        for pair in pairs:
            first, second = pair.polygon_id, pair.counterpart_id
            if first not in records or second not in records:
                continue
            geometry_a = arena.get(first, records[first].geometry)
            geometry_b = arena.get(second, records[second].geometry)
            if intersects(geometry_a, geometry_b):
                continue
            for clipped_id, counterpart_id in ((first, second), (second, first)):
                if clipped_id in versioned and counterpart_id not in versioned:
                    resolved.setdefault(counterpart_id, list()).append(clipped_id)
        return resolved
