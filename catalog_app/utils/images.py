# catalog_app/utils/images.py
import io
import base64
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

from catalog_app.config import settings
from catalog_app.core.errors import ImageTooLarge, ImageWrongType

logger = logging.getLogger(__name__)


@dataclass
class CandidateFile:
    """
    A file picked for upload. Shaped like starlette's UploadFile
    (filename, content_type, size, async read) so either can be staged.
    """
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    async def read(self) -> bytes:
        return self.data

    @classmethod
    def from_path(cls, path, content_type: Optional[str] = None) -> "CandidateFile":
        p = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        return cls(filename=p.name, content_type=content_type, data=p.read_bytes())


@dataclass(frozen=True)
class ImagePreview:
    data_uri: str
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None


@dataclass(frozen=True)
class StagedImage:
    filename: str
    content_type: str
    data: bytes
    preview: ImagePreview

    @property
    def size(self) -> int:
        return len(self.data)


def _data_uri(content_type: str, data: bytes) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def make_preview(data: bytes, content_type: str, size: Tuple[int, int] = (300, 300)) -> ImagePreview:
    """
    Build a displayable thumbnail. Bytes Pillow cannot decode still get a
    preview: the raw content as a data URI, without dimensions.
    """
    try:
        im = Image.open(io.BytesIO(data))
        width, height = im.size
        fmt = im.format
        thumb = im.convert("RGB")
        thumb.thumbnail(size)
        bio = io.BytesIO()
        thumb.save(bio, format="JPEG", optimize=True, quality=85)
    except Exception as e:
        logger.warning("Could not decode image for preview (%s): %s", content_type, e)
        return ImagePreview(data_uri=_data_uri(content_type, data))
    return ImagePreview(data_uri=_data_uri("image/jpeg", bio.getvalue()), width=width, height=height, format=fmt)


class ImageStaging:
    """
    Holds at most one validated image awaiting submission.

    Every stage() call takes a ticket; when the read of an older candidate
    finishes after a newer stage() or unstage(), its result is dropped.
    """

    def __init__(self, max_bytes: Optional[int] = None, preview_size: Optional[Tuple[int, int]] = None):
        self.max_bytes = int(max_bytes if max_bytes is not None else settings.MAX_IMAGE_BYTES)
        self.preview_size = preview_size or (settings.PREVIEW_WIDTH, settings.PREVIEW_HEIGHT)
        self._staged: Optional[StagedImage] = None
        self._ticket = 0

    @property
    def staged(self) -> Optional[StagedImage]:
        return self._staged

    @property
    def preview(self) -> Optional[ImagePreview]:
        return self._staged.preview if self._staged else None

    def validate(self, size: int, content_type: Optional[str]) -> None:
        # size first, then type
        if size > self.max_bytes:
            mib = 1024 * 1024
            limit = f"{self.max_bytes // mib}MB" if self.max_bytes % mib == 0 else f"{self.max_bytes} bytes"
            raise ImageTooLarge(f"Image file must be less than {limit}")
        if not (content_type or "").startswith("image/"):
            raise ImageWrongType("Please select a valid image file")

    async def stage(self, candidate) -> Optional[StagedImage]:
        """
        Validate and stage `candidate`. Raises ImageTooLarge / ImageWrongType and
        leaves the current staged image untouched on rejection. Returns None when
        a newer stage() or unstage() superseded this one while it was reading.
        """
        size = getattr(candidate, "size", None)
        data = None
        if size is None:
            data = await candidate.read()
            size = len(data)
        content_type = getattr(candidate, "content_type", None)
        self.validate(size, content_type)

        self._ticket += 1
        ticket = self._ticket
        if data is None:
            data = await candidate.read()
        if ticket != self._ticket:
            logger.debug("Discarding stale stage of %s (ticket %s, latest %s)",
                         getattr(candidate, "filename", None), ticket, self._ticket)
            return None

        staged = StagedImage(
            filename=getattr(candidate, "filename", None) or "upload",
            content_type=content_type,
            data=data,
            preview=make_preview(data, content_type, self.preview_size),
        )
        self._staged = staged
        logger.debug("Staged %s (%s, %s bytes)", staged.filename, staged.content_type, staged.size)
        return staged

    def unstage(self) -> None:
        """Clear the staged image and preview; also invalidates any pending stage."""
        self._ticket += 1
        self._staged = None
