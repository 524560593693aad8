from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


class TaskKind(str, Enum):
    GENERIC = "generic"
    SHEETS = "sheets"


class GenericResult(BaseModel):
    answer: str


class SheetResult(BaseModel):
    title: str
    # passed through as the model returned them; expected shape is
    # {"name", "type": string|number|date|boolean, "description"}
    columns: List[Any]
    sample_csv: str


class TaskRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: TaskStatus
    kind: TaskKind
    created_at: int = Field(alias="createdAt")  # epoch millis
    result: Optional[Union[GenericResult, SheetResult]] = None
    error: Optional[str] = None
