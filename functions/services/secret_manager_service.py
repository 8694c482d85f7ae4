import os
import logging
from google.cloud import secretmanager
from google.api_core.exceptions import NotFound, PermissionDenied

log = logging.getLogger(__name__)

DEFAULT_PROJECT_ID = "rentdesk-app"
AWS_ACCESS_KEY_SECRET = "AWS_ACCESS_KEY_ID"
AWS_SECRET_KEY_SECRET = "AWS_SECRET_ACCESS_KEY"

_secret_client = None


def get_secret_client():
    """The Secret Manager client, created on first use so importing needs no credentials."""
    global _secret_client
    if _secret_client is None:
        _secret_client = secretmanager.SecretManagerServiceClient()
    return _secret_client


def secret_version_path(secret_id: str, version_id: str = "latest") -> str:
    # GCLOUD_PROJECT is set by the Functions runtime; local runs fall back to the default project.
    project_id = os.environ.get('GCLOUD_PROJECT') or DEFAULT_PROJECT_ID
    return f"projects/{project_id}/secrets/{secret_id}/versions/{version_id}"


def access_secret_version(secret_id: str, version_id: str = "latest") -> str | None:
    """
    Returns the decoded payload of a secret version, or None when it cannot be read.
    The version can be a version number or "latest".
    """
    name = secret_version_path(secret_id, version_id)
    try:
        response = get_secret_client().access_secret_version(request={"name": name})
    except PermissionDenied as e:
        log.error(f"Permission denied reading secret '{secret_id}'. "
                  f"The service account needs the 'Secret Manager Secret Accessor' role: {e}")
        return None
    except NotFound:
        log.error(f"Secret '{secret_id}' (version {version_id}) does not exist.")
        return None
    except Exception as e:
        log.error(f"Unexpected error accessing secret '{secret_id}': {e}")
        return None

    return response.payload.data.decode("UTF-8").strip()


def get_aws_credentials() -> tuple[str, str] | None:
    """The SES key pair, or None when either half is missing."""
    access_key_id = access_secret_version(AWS_ACCESS_KEY_SECRET)
    secret_access_key = access_secret_version(AWS_SECRET_KEY_SECRET)
    if not access_key_id or not secret_access_key:
        return None
    return access_key_id, secret_access_key
