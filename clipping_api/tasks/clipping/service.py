"""Entry points behind the clipping routes.

Requests are validated and resolved to a candidate polygon set before
anything is written. A single candidate is clipped inline, larger sets are
handed to a background job.
"""
from typing import Dict, List, Optional, Tuple, Union
from uuid import uuid4

from fastapi.logger import logger as default_logger

from ...errors import BadRequestError, JobFailureError, RecordNotFoundError
from ...models.enum.jobs import JobStatus
from ...models.pydantic.geometry import Feature, FeatureCollection, Geometry
from ...models.pydantic.jobs import ClippingJobData, JobHandle
from ...models.pydantic.polygons import (
    Actor,
    BatchMeta,
    ClippedPolygon,
    ClippedVersion,
    ClippingPreview,
    ClippingRequestIn,
    ClippingSummary,
    GeometryRecord,
)
from ...utils.geometry import hectares, to_geojson
from .. import unique
from .classifier import OverlapClassifier
from .clipper import Arena, PolygonClipper
from .jobs import NOTHING_CLIPPED_MESSAGE, ClippingJob, Notifier
from .stores import JobStore, SitePolygonStore, SiteStore
from .versioning import ClippingWorkflow

JOB_NAME = "Polygon Clipping"
SOURCE = "polygon-clipping"


class ClippingService:
    def __init__(
        self,
        classifier: OverlapClassifier,
        clipper: PolygonClipper,
        workflow: ClippingWorkflow,
        site_store: SiteStore,
        site_polygon_store: SitePolygonStore,
        job_store: JobStore,
        notify: Optional[Notifier] = None,
        logger=default_logger,
    ):
        self.classifier = classifier
        self.clipper = clipper
        self.workflow = workflow
        self.site_store = site_store
        self.site_polygon_store = site_polygon_store
        self.job_store = job_store
        self.notify = notify
        self.logger = logger

    # Target resolution

    async def site_polygon_ids(self, site_uuid: str) -> List[str]:
        site = await self.site_store.get_site(site_uuid)
        return await self.site_polygon_store.get_active_polygon_ids_for_sites(
            [site.uuid]
        )

    async def project_polygon_ids(self, site_uuid: str) -> List[str]:
        sites = await self.site_store.get_project_sites(site_uuid)
        return await self.site_polygon_store.get_active_polygon_ids_for_sites(
            [site.uuid for site in sites]
        )

    @staticmethod
    def validate_polygon_uuids(polygon_uuids: List[str]) -> List[str]:
        if not polygon_uuids:
            raise BadRequestError("No polygon UUIDs provided")
        if any(not uuid or not uuid.strip() for uuid in polygon_uuids):
            raise BadRequestError("Polygon UUIDs must not be empty")
        return unique(polygon_uuids)

    async def resolve_request(
        self, request: ClippingRequestIn
    ) -> Tuple[List[str], Optional[str]]:
        """Requested polygon ids and the site they belong to, if known."""
        targets = [
            target
            for target in (
                request.site_uuid,
                request.project_site_uuid,
                request.polygon_uuids,
            )
            if target is not None
        ]
        if len(targets) != 1:
            raise BadRequestError(
                "Exactly one of siteUuid, projectSiteUuid or polygonUuids must be provided"
            )

        if request.polygon_uuids is not None:
            return self.validate_polygon_uuids(request.polygon_uuids), None
        if request.site_uuid is not None:
            if not request.site_uuid.strip():
                raise BadRequestError("siteUuid must not be empty")
            return await self.site_polygon_ids(request.site_uuid), request.site_uuid
        if not request.project_site_uuid.strip():  # type: ignore
            raise BadRequestError("projectSiteUuid must not be empty")
        return await self.project_polygon_ids(request.project_site_uuid), None  # type: ignore

    # Versioned clipping

    async def submit(
        self, request: ClippingRequestIn, actor: Actor
    ) -> Tuple[Union[ClippedVersion, JobHandle], Optional[ClippingJob]]:
        """Validate a clipping request and start it.

        Returns the clipped version for a single candidate polygon, otherwise
        the handle of the created job together with the job to run.
        """
        requested, site_uuid = await self.resolve_request(request)

        fixable = set(await self.classifier.fixable_polygon_ids(requested))
        candidates = [uuid for uuid in requested if uuid in fixable]
        if not candidates:
            raise RecordNotFoundError("No fixable overlapping polygons found")

        if len(candidates) == 1:
            return await self.clip_one(candidates[0], actor, site_uuid), None

        job_id = uuid4()
        entity_name = await self.entity_name(candidates)
        await self.job_store.create_job(
            job_id,
            status=JobStatus.pending,
            name=JOB_NAME,
            entity_name=entity_name,
            created_by=actor.user_id,
            total_content=len(candidates),
            processed_content=0,
            progress_message=f"Queued clipping of {len(candidates)} polygons",
            is_acknowledged=False,
        )
        self.logger.info(
            f"Created clipping job {job_id} for {len(candidates)} polygons ({entity_name})"
        )

        job = ClippingJob(
            ClippingJobData(
                job_id=job_id,
                polygon_uuids=candidates,
                user_id=actor.user_id,
                user_full_name=actor.full_name,
                source=SOURCE,
                site_uuid=site_uuid,
            ),
            self.workflow,
            self.job_store,
            notify=self.notify,
            logger=self.logger,
        )
        return JobHandle(id=job_id, status=JobStatus.pending), job

    async def clip_one(
        self, polygon_uuid: str, actor: Actor, site_uuid: Optional[str] = None
    ) -> ClippedVersion:
        results = await self.workflow.clip_and_version(
            [polygon_uuid], actor, BatchMeta(source=SOURCE, site_uuid=site_uuid)
        )
        if not results:
            raise JobFailureError(404, NOTHING_CLIPPED_MESSAGE)
        if len(results) > 1:
            # Overlapping neighbours can be the larger polygon of a pair
            self.logger.warning(
                f"Clipping polygon {polygon_uuid} also versioned "
                f"{len(results) - 1} overlapping polygons: "
                f"{', '.join(result.id for result in results[1:])}"
            )
        return results[0]

    async def entity_name(self, polygon_uuids: List[str]) -> str:
        """Site name if all polygons share a site, project name if they share
        a project, "N polygons" otherwise."""
        fallback = f"{len(polygon_uuids)} polygons"

        site_polygons = await self.site_polygon_store.get_active_site_polygons(
            polygon_uuids
        )
        site_uuids = unique([sp.site_id for sp in site_polygons if sp.site_id])
        if not site_uuids:
            return fallback

        sites = await self.site_store.get_sites(site_uuids)
        if len(site_uuids) == 1 and len(sites) == 1:
            return sites[0].name or fallback

        project_ids = {site.project_id for site in sites}
        if len(project_ids) == 1 and None not in project_ids:
            project = await self.site_store.get_project(project_ids.pop())
            if project is not None and project.name:
                return project.name

        return fallback

    # Previews

    async def preview_site(self, site_uuid: str) -> ClippingPreview:
        ids = await self.site_polygon_ids(site_uuid)
        fixable = await self.classifier.fixable_polygon_ids(ids)
        if not fixable:
            raise RecordNotFoundError(
                f"No fixable overlapping polygons found for site {site_uuid}"
            )
        return await self.preview(fixable)

    async def preview_project(self, site_uuid: str) -> ClippingPreview:
        ids = await self.project_polygon_ids(site_uuid)
        fixable = await self.classifier.fixable_polygon_ids(ids)
        if not fixable:
            raise RecordNotFoundError(
                f"No fixable overlapping polygons found for project via site {site_uuid}"
            )
        return await self.preview(fixable)

    async def preview_polygons(self, polygon_uuids: List[str]) -> ClippingPreview:
        requested = self.validate_polygon_uuids(polygon_uuids)
        fixable = await self.classifier.fixable_polygon_ids(requested)
        if not fixable:
            raise RecordNotFoundError(
                "No fixable overlapping polygons found in the provided list"
            )
        return await self.preview(fixable, total_requested=len(requested))

    async def preview(
        self, fixable: List[str], total_requested: Optional[int] = None
    ) -> ClippingPreview:
        """Clip in memory and return before and after GeoJSON. Nothing is
        written."""
        arena, records = await self.clipper.evaluate(fixable)
        clipped = self.clipped_polygons(arena, records)

        if total_requested is None:
            message = (
                f"Successfully processed {len(fixable)} polygons, "
                f"clipped {len(clipped)} polygons"
            )
        else:
            message = (
                f"Successfully processed {len(fixable)} fixable polygons from "
                f"{total_requested} requested, clipped {len(clipped)} polygons"
            )

        return ClippingPreview(
            original_geometries=self.original_collection(fixable, records).dict(),
            clipped_geometries=self.clipped_collection(clipped).dict(),
            summary=ClippingSummary(
                total_polygons_processed=len(fixable),
                polygons_clipped=len(clipped),
                total_polygons_requested=total_requested,
                message=message,
            ),
        )

    @staticmethod
    def clipped_polygons(
        arena: Arena, records: Dict[str, GeometryRecord]
    ) -> List[ClippedPolygon]:
        clipped: List[ClippedPolygon] = list()
        for uuid, geometry in arena.items():
            original = records[uuid].geometry
            latitude = original.centroid.y
            original_area = hectares(original, latitude)
            new_area = hectares(geometry, latitude)
            clipped.append(
                ClippedPolygon(
                    poly_id=uuid,
                    poly_name=records[uuid].name or "Unnamed",
                    geometry=geometry,
                    original_area=original_area,
                    new_area=new_area,
                    area_removed=original_area - new_area,
                )
            )
        return clipped

    @staticmethod
    def original_collection(
        polygon_ids: List[str], records: Dict[str, GeometryRecord]
    ) -> FeatureCollection:
        features = [
            Feature(
                properties={
                    "poly_id": uuid,
                    "poly_name": records[uuid].name or "Unnamed",
                },
                geometry=Geometry(**to_geojson(records[uuid].geometry)),
            )
            for uuid in polygon_ids
            if uuid in records
        ]
        return FeatureCollection(features=features)

    @staticmethod
    def clipped_collection(clipped: List[ClippedPolygon]) -> FeatureCollection:
        features = [
            Feature(
                properties={
                    "poly_id": polygon.poly_id,
                    "poly_name": polygon.poly_name,
                    "original_area_ha": polygon.original_area,
                    "new_area_ha": polygon.new_area,
                    "area_removed_ha": polygon.area_removed,
                },
                geometry=Geometry(**to_geojson(polygon.geometry)),
            )
            for polygon in clipped
        ]
        return FeatureCollection(features=features)
