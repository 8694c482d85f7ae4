import logging
from firebase_admin import storage

log = logging.getLogger(__name__)


def build_storage_path(owner_id: str, file_name: str, file_type: str = "receipts") -> str:
    """e.g. "Users/default/receipts/<file_name>.pdf"."""
    return f"Users/{owner_id}/{file_type}/{file_name}.pdf"


def upload_to_storage(file_bytes: bytes, owner_id: str, file_name: str, file_type: str = "receipts") -> str | None:
    """
    Uploads a PDF to Firebase Storage.
    Returns the storage path if successful, None otherwise.
    """
    try:
        bucket = storage.bucket()

        file_path = build_storage_path(owner_id, file_name, file_type)
        blob = bucket.blob(file_path)

        # Upload the file from bytes
        blob.upload_from_string(
            file_bytes,
            content_type='application/pdf'
        )

        log.info(f"Successfully uploaded {file_type} file to {file_path}.")
        return file_path

    except Exception as e:
        log.error(f"Error uploading to Firebase Storage: {e}")
        return None


def download_from_storage(file_path: str) -> bytes | None:
    """
    Reads a file back from Firebase Storage.
    Returns None when the file does not exist; storage errors propagate to the caller.
    """
    bucket = storage.bucket()
    blob = bucket.blob(file_path)

    if not blob.exists():
        log.error(f"File not found in storage at: {file_path}")
        return None

    return blob.download_as_bytes()
