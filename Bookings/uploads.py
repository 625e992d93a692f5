import logging
import os
import uuid

from django.conf import settings
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


def store_photos(files, request=None):
    """
    Saves uploaded booking photos to the default storage.
    Returns the stored names and their public URLs.
    """
    names, urls = [], []

    for upload in files:
        extension = os.path.splitext(upload.name)[1].lower()
        name = default_storage.save(
            f"{settings.BOOKING_UPLOAD_DIR}/{uuid.uuid4().hex}{extension}", upload
        )
        names.append(name)

        url = default_storage.url(name)
        urls.append(request.build_absolute_uri(url) if request else url)

    if names:
        logger.info("Stored %s booking photo(s)", len(names))
    return names, urls


def discard_photos(names):
    for name in names:
        default_storage.delete(name)


def submit_with_photos(request, data, operation):
    """
    Stores the request's photos, hands their URLs to ``operation`` and
    removes the files again if the operation fails.
    """
    data = dict(data)
    names, data["photos"] = store_photos(data.get("photos", []), request)

    try:
        return operation(data)
    except Exception:
        discard_photos(names)
        raise
