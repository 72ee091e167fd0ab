from ...application import transaction
from ...crud import criteria as criteria_crud
from ...crud import delayed_jobs as delayed_jobs_crud
from ...crud import polygon_geometry as polygon_geometry_crud
from ...crud import site_polygons as site_polygons_crud
from ...crud import sites as sites_crud
from ...tasks.clipping.classifier import OverlapClassifier
from ...tasks.clipping.clipper import PolygonClipper
from ...tasks.clipping.jobs import JobRunner, runner
from ...tasks.clipping.service import ClippingService
from ...tasks.clipping.versioning import ClippingWorkflow
from ...utils.notifications import send_clipping_complete_email


async def get_clipping_service() -> ClippingService:
    """Clipping service wired to the database stores."""
    classifier = OverlapClassifier(criteria_crud)
    clipper = PolygonClipper(classifier, polygon_geometry_crud)
    workflow = ClippingWorkflow(
        classifier,
        clipper,
        polygon_geometry_crud,
        criteria_crud,
        site_polygons_crud,
        transaction,
    )
    return ClippingService(
        classifier,
        clipper,
        workflow,
        sites_crud,
        site_polygons_crud,
        delayed_jobs_crud,
        notify=send_clipping_complete_email,
    )


async def get_job_runner() -> JobRunner:
    return runner
