from typing import Any, Optional, Union

from pydantic import BaseModel, Field, fields, validator
from sqlalchemy.engine.url import URL
from starlette.datastructures import Secret


class DatabaseURL(BaseModel):
    """Connection settings for one of the polygon store pools."""

    drivername: str = Field(..., alias="driver")
    host: str = "localhost"
    port: Optional[Union[str, int]] = None
    username: Optional[str] = Field(None, alias="user")
    password: Optional[Union[str, Secret]] = None
    database: str
    url: Optional[URL] = None

    class Config:
        arbitrary_types_allowed = True
        allow_population_by_field_name = True

    @validator("url", always=True)
    def build_url(cls, v: Any, field: fields.Field, values: dict):
        if isinstance(v, URL):
            return v
        # Secrets must be unwrapped, URL only accepts plain strings
        args = {key: str(value) for key, value in values.items() if value is not None}
        return URL(**args)
