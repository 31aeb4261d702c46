from pydantic import BaseModel, ConfigDict, Field

DEFAULT_HEADING = "Maintenance Mode"
DEFAULT_MESSAGE = "This website is currently undergoing maintenance. Please check back soon."


class MaintenanceConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    heading: str = DEFAULT_HEADING
    message: str = DEFAULT_MESSAGE
    secret_phrase: str = ""


class HealthResponse(BaseModel):
    status: str
    maintenance: bool | None = None


class MenuEntryResponse(BaseModel):
    page_title: str
    menu_title: str
    slug: str
    url: str


class MenuResponse(BaseModel):
    entries: list[MenuEntryResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    code: str
    message: str
    request_id: str
