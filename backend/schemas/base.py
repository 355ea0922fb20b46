from datetime import datetime
from typing import Annotated, Optional
from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from utils.dates import as_utc




UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class SCamelModel(BaseModel):
    """Campos em snake_case no código, camelCase no JSON"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


class SErrorResponse(SCamelModel):
    success: bool = False
    error: str
    code: str
    current_status: Optional[str] = None
