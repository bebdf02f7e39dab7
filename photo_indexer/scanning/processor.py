from typing import Iterable

from ..imaging.thumbnail import decode_image, make_thumbnail
from ..metadata.dates import deduce_date
from ..metadata.extract import read_exif_tags
from ..models import DatePath, FileInfo
from .hasher import fingerprint


class ContentProcessor:
    """
    Turns the raw bytes of one image into a FileInfo record.

    Steps:
      1. Decode (ImageDecodeError propagates; caller skips the file)
      2. Thumbnail
      3. Fingerprint
      4. EXIF + date inference

    Nothing here touches the catalog; storing the record is the caller's job.
    """

    def process(self, buf: bytes, relative_path: str, date_paths: Iterable[DatePath] = ()) -> FileInfo:
        img = decode_image(buf)
        try:
            thumb = make_thumbnail(img)
        finally:
            img.close()

        file_hash = fingerprint(buf)
        tags = read_exif_tags(buf, label=relative_path)
        date = deduce_date(tags, relative_path, date_paths)

        return FileInfo(
            hash=file_hash,
            date=date,
            thumb=thumb,
        )
