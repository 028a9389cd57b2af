"""
Data models for Drive API resources.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from typing import Dict, Any, Optional


FOLDER_MIME_TYPE = 'application/vnd.google-apps.folder'


@dataclass(frozen=True)
class FileMetadata:
    """
    A Drive v2 file resource, reduced to the fields stream2drive uses.

    Attributes:
        id: Drive file id
        title: File title (Drive v2 name)
        mime_type: MIME type
        file_size: Size in bytes, None for native Google documents
        md5_checksum: Hex MD5 of the content, if Drive computed one
        modified_date: RFC 3339 modification timestamp
        last_modifying_user_name: Display name of the last editor
        download_url: Short-lived content URL
    """
    id: str
    title: str
    mime_type: str = 'application/octet-stream'
    file_size: Optional[int] = None
    md5_checksum: Optional[str] = None
    modified_date: str = ''
    last_modifying_user_name: str = ''
    download_url: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileMetadata':
        """Create from a Drive v2 file resource."""
        size = data.get('fileSize')
        return cls(
            id=data.get('id', ''),
            title=data.get('title', ''),
            mime_type=data.get('mimeType', 'application/octet-stream'),
            file_size=int(size) if size is not None else None,
            md5_checksum=data.get('md5Checksum'),
            modified_date=data.get('modifiedDate', ''),
            last_modifying_user_name=data.get('lastModifyingUserName', ''),
            download_url=data.get('downloadUrl'),
            raw=data
        )


@dataclass(frozen=True)
class UploadSession:
    """
    Server-side resumable upload context.

    Attributes:
        url: Session URI returned in the Location header
        total_bytes: Declared content length, None when streaming
    """
    url: str
    total_bytes: Optional[int] = None


@dataclass(frozen=True)
class DownloadLocation:
    """
    Transient reference to an object's content, resolved right before
    the byte loop starts.

    Attributes:
        url: Content URL (may expire)
        size: Content length in bytes
        md5_checksum: Expected MD5 (hex), if known
    """
    url: str
    size: int
    md5_checksum: Optional[str] = None
