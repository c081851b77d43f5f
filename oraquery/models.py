from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Any, Dict


def _lenient_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class ConnectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hostname: str
    port: int
    service_name: str = Field(alias="serviceName")
    username: str
    password: str


class ConnectResponse(BaseModel):
    success: bool = True
    message: str
    server: str
    service: str
    user: str


class MessageResponse(BaseModel):
    success: bool
    message: str


class ExecuteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = None
    page: int = 1
    page_size: int = Field(default=0, alias="pageSize")

    @field_validator("page", mode="before")
    @classmethod
    def _coerce_page(cls, value: Any) -> int:
        return max(_lenient_int(value, 1), 1)

    @field_validator("page_size", mode="before")
    @classmethod
    def _coerce_page_size(cls, value: Any) -> int:
        return max(_lenient_int(value, 0), 0)


class ExecuteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    results: List[Dict[str, Any]]
    total_count: Optional[int] = Field(default=None, alias="totalCount")
    page: int
    page_size: int = Field(alias="pageSize")


class TablesResponse(BaseModel):
    success: bool = True
    tables: List[str]


class DescribeRequest(BaseModel):
    table: Optional[str] = None


class DescribeResponse(BaseModel):
    success: bool = True
    owner: str
    table: str
    columns: List[Dict[str, Any]]


class StatusResponse(BaseModel):
    connected: bool
    timestamp: str


class DiagnoseRequest(BaseModel):
    hostname: str = ""
    port: Optional[Any] = None


class DiagnoseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hostname: str
    port: Optional[Any] = None
    ping_success: bool = Field(alias="pingSuccess")
    ping_result: str = Field(alias="pingResult")
    suggestions: List[str]
