class ShredboxError(Exception):
    """Base class."""

    status_code = 500


class UploadRejected(ShredboxError):
    """Bad client input: missing file, bad expiry, bad name length, bad envelope."""

    status_code = 400


class UploadTooLarge(ShredboxError):
    status_code = 413


class ContentDetectionError(ShredboxError):
    status_code = 500


class StorageError(ShredboxError):
    status_code = 500
