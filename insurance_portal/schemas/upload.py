"""Upload response schema."""

from insurance_portal.schemas.base import CamelModel


class UploadResponse(CamelModel):
    file_url: str
    name: str
