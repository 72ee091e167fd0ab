import logging
import sys
from asyncio.exceptions import TimeoutError as AsyncTimeoutError

from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.logger import logger
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.requests import Request
from fastapi.responses import ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .application import app
from .errors import http_error_handler
from .middleware import set_db_mode
from .routes import health
from .routes.jobs import job
from .routes.polygon_clipping import clipping, preview

################
# LOGGING
################

gunicorn_logger = logging.getLogger("gunicorn.error")
logger.handlers = gunicorn_logger.handlers
sys.path.extend(["./"])


################
# ERRORS
################


@app.exception_handler(AsyncTimeoutError)
async def timeout_error_handler(
    request: Request, exc: AsyncTimeoutError
) -> ORJSONResponse:
    """Use JSEND protocol for timeouts."""
    return ORJSONResponse(
        status_code=524,
        content={
            "status": "error",
            "message": "A timeout occurred while processing the request. Request canceled.",
        },
    )


@app.exception_handler(HTTPException)
async def httpexception_error_handler(
    request: Request, exc: HTTPException
) -> ORJSONResponse:
    """Use JSEND protocol for HTTP exceptions."""
    return http_error_handler(exc)


@app.exception_handler(RequestValidationError)
async def rve_error_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Use JSEND protocol for validation errors."""
    return ORJSONResponse(
        status_code=422,
        content={"status": "failed", "message": jsonable_encoder(exc.errors())},
    )


#################
# MIDDLEWARE
#################

MIDDLEWARE = (set_db_mode,)

for m in MIDDLEWARE:
    app.add_middleware(BaseHTTPMiddleware, dispatch=m)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

#######################
# POLYGON CLIPPING API
#######################

clipping_routers = (clipping.router, preview.router)

for r in clipping_routers:
    app.include_router(r, prefix="/polygonClipping/v3")

app.include_router(job.router, prefix="/polygonClipping/v3/jobs")

###############
# HEALTH API
###############

app.include_router(health.router, prefix="")


#######################
# OPENAPI Documentation
#######################


tags_metadata = [
    {"name": "Polygon Clipping", "description": clipping.__doc__},
    {"name": "Jobs", "description": job.__doc__},
    {"name": "Health", "description": health.__doc__},
]


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="Polygon Clipping API",
        version="0.1.0",
        description="Resolve small overlaps between site polygons.",
        routes=app.routes,
    )

    openapi_schema["tags"] = tags_metadata
    openapi_schema["x-tagGroups"] = [
        {"name": "Polygon Clipping API", "tags": ["Polygon Clipping", "Jobs"]},
        {"name": "Health API", "tags": ["Health"]},
    ]

    app.openapi_schema = openapi_schema

    return app.openapi_schema


app.openapi = custom_openapi

if __name__ == "__main__":
    import uvicorn

    logger.setLevel(logging.DEBUG)
    uvicorn.run(app, host="0.0.0.0", port=8888, log_level="info")
else:
    logger.setLevel(gunicorn_logger.level)
