"""Upload sourcemaps for generated JavaScript files to Replay."""

__version__ = "0.1.0"

from sourcemap_upload.api.client import UploadError  # noqa: E402
from sourcemap_upload.engine import process_source_maps, upload_source_maps  # noqa: E402

__all__ = ["UploadError", "process_source_maps", "upload_source_maps", "__version__"]
