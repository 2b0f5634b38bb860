from __future__ import annotations

import logging
import mimetypes
import uuid
from dataclasses import dataclass
from typing import Iterable, Protocol

from bookmart.core.errors import CatalogError


LOGGER = logging.getLogger(__name__)

MAX_IMAGES = 5


@dataclass(slots=True, frozen=True)
class ImageFile:
    filename: str
    content: bytes


class ImageStore(Protocol):
    def upload_image(self, path: str, content: bytes, content_type: str | None = None) -> None: ...

    def public_image_url(self, path: str) -> str: ...


def image_storage_path(owner_id: str, filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    suffix = f".{ext.lower()}" if dot and ext else ""
    return f"{owner_id}/{uuid.uuid4().hex}{suffix}"


def upload_images(
    store: ImageStore,
    owner_id: str,
    files: Iterable[ImageFile],
    existing: list[str] | None = None,
    max_images: int = MAX_IMAGES,
) -> list[str]:
    """
    Upload files until the listing holds max_images. Failed uploads are logged
    and skipped; the returned list is existing URLs followed by new ones.
    """
    images = list(existing or [])
    for image in files:
        if len(images) >= max_images:
            LOGGER.info("Image cap reached owner=%s max=%s", owner_id, max_images)
            break
        path = image_storage_path(owner_id, image.filename)
        content_type, _ = mimetypes.guess_type(image.filename)
        try:
            store.upload_image(path, image.content, content_type)
        except CatalogError as exc:
            LOGGER.warning("Image upload failed owner=%s file=%s error=%s", owner_id, image.filename, exc)
            continue
        images.append(store.public_image_url(path))
    return images


def remove_image(images: list[str], index: int) -> list[str]:
    return [url for position, url in enumerate(images) if position != index]
