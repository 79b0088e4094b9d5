"""Remote copy models - link between a local file and its stored counterpart."""

from pydantic import BaseModel


class RemoteCopy(BaseModel):
    """Record of the remote counterpart of a local filename (most recent write wins)."""

    filename: str
    remote_id: str
    shareable_link: str = ""
    mime_type: str = "application/octet-stream"


class UploadedItem(BaseModel):
    """Storage response for a successful upload."""

    remote_id: str
    web_url: str = ""
