from typing import Dict, List, Sequence, Tuple

from fastapi.logger import logger as default_logger

from ...models.pydantic.polygons import CriteriaRecord, OverlapPair
from ...settings.globals import (
    BATCH_SIZE,
    MAX_OVERLAP_AREA_HECTARES,
    MAX_OVERLAP_PERCENTAGE,
)
from .. import chunked, unique
from .stores import CriteriaStore


class OverlapClassifier:
    """Select the overlapping polygon pairs small enough to be clipped
    automatically."""

    def __init__(
        self,
        criteria_store: CriteriaStore,
        logger=default_logger,
        batch_size: int = BATCH_SIZE,
        max_percentage: float = MAX_OVERLAP_PERCENTAGE,
        max_area_ha: float = MAX_OVERLAP_AREA_HECTARES,
    ):
        self.criteria_store = criteria_store
        self.logger = logger
        self.batch_size = batch_size
        self.max_percentage = max_percentage
        self.max_area_ha = max_area_ha

    def is_fixable(self, percentage: float, area_ha: float) -> bool:
        return percentage <= self.max_percentage and area_ha <= self.max_area_ha

    async def classify(self, polygon_ids: Sequence[str]) -> List[OverlapPair]:
        """Fixable pairs touching any of the given polygons.

        Each pair appears once, whichever side reported it, in the order it
        was first found.
        """
        ids = unique(polygon_ids)
        if not ids:
            return list()

        position = {polygon_id: i for i, polygon_id in enumerate(ids)}
        records: List[CriteriaRecord] = list()
        for chunk in chunked(ids, self.batch_size):
            records.extend(await self.criteria_store.get_overlap_criteria(chunk))
        records.sort(key=lambda record: position.get(record.polygon_id, len(ids)))

        pairs: Dict[Tuple[str, str], OverlapPair] = dict()
        for record in records:
            for observation in record.observations:
                if observation.counterpart == record.polygon_id:
                    continue
                if not self.is_fixable(observation.percentage, observation.area_ha):
                    continue
                pair = OverlapPair(
                    polygon_id=record.polygon_id,
                    counterpart_id=observation.counterpart,
                    percentage=observation.percentage,
                    area_ha=observation.area_ha,
                )
                pairs.setdefault(pair.key, pair)

        self.logger.info(
            f"Found {len(pairs)} fixable overlap pairs for {len(ids)} polygons"
        )
        return list(pairs.values())

    async def fixable_polygon_ids(self, polygon_ids: Sequence[str]) -> List[str]:
        """Members of fixable pairs, input polygons first."""
        pairs = await self.classify(polygon_ids)
        members: List[str] = list()
        for pair in pairs:
            members.extend((pair.polygon_id, pair.counterpart_id))
        return unique(members)
