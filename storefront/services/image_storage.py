import logging
import os
import secrets
import time

from werkzeug.utils import secure_filename

from storefront.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpeg", "jpg", "png", "gif", "webp"}
PUBLIC_PREFIX = "/storage/"


class ImageStorage:
    """Stores uploaded product images on the local filesystem.

    Stored images are addressed by their public path
    (``/storage/products/<file>``) which is what the product row keeps.
    """

    def __init__(self, root: str, directory: str = "products"):
        self.root = root
        self.directory = directory

    @staticmethod
    def extension_of(filename: str) -> str:
        _, _, ext = secure_filename(filename or "").rpartition(".")
        return ext.lower()

    def save(self, upload) -> str:
        ext = self.extension_of(upload.filename)
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError({
                "image": ["The image must be a file of type: jpeg, jpg, png, gif, webp."]
            })

        filename = f"{int(time.time())}_{secrets.token_hex(5)}.{ext}"
        target_dir = os.path.join(self.root, self.directory)
        os.makedirs(target_dir, exist_ok=True)
        upload.save(os.path.join(target_dir, filename))
        logger.info("Stored image %s", filename)
        return f"{PUBLIC_PREFIX}{self.directory}/{filename}"

    def delete(self, path) -> bool:
        """Remove a stored image. Remote URLs and unknown paths are ignored."""
        if not path or not path.startswith(PUBLIC_PREFIX):
            return False
        relative = path[len(PUBLIC_PREFIX):]
        full_path = os.path.abspath(os.path.join(self.root, *relative.split("/")))
        if not full_path.startswith(os.path.abspath(self.root) + os.sep):
            return False
        if not os.path.isfile(full_path):
            return False
        os.remove(full_path)
        logger.info("Deleted image %s", relative)
        return True
