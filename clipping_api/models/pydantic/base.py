from datetime import datetime

from pydantic import BaseModel, Extra


class BaseORMRecord(BaseModel):
    class Config:
        orm_mode = True


class BaseRecord(BaseModel):
    created_on: datetime
    updated_on: datetime

    class Config:
        orm_mode = True


class StrictBaseModel(BaseModel):
    class Config:
        extra = Extra.forbid
        validate_assignment = True


class CamelCaseModel(BaseModel):
    """Models serialized with the camelCase field names the site polygon
    front end expects."""

    class Config:
        allow_population_by_field_name = True
        alias_generator = lambda s: "".join(  # noqa: E731
            w if i == 0 else w.capitalize() for i, w in enumerate(s.split("_"))
        )
