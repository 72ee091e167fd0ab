from typing import Any, Dict, Union

from pydantic.main import BaseModel

from ..application import db


async def update_data(
    row: db.Model, input_data: Union[BaseModel, Dict[str, Any]]  # type: ignore
) -> db.Model:  # type: ignore
    """Apply changed fields to an existing row."""

    if not input_data:
        return row

    if isinstance(input_data, BaseModel):
        input_data = input_data.dict(skip_defaults=True, by_alias=True)

    await row.update(**input_data).apply()

    return row
