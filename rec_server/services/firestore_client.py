"""
Shared Firestore AsyncClient construction for the Firestore-backed stores.

All Firestore stores (content, signals, users) use the same service account
credentials and project id, taken from FIREBASE_CREDENTIALS_PATH and
FIREBASE_PROJECT_ID.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from google.cloud.firestore import AsyncClient
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

# Upper bound on documents streamed by one query (one page).
MAX_FETCH = 2000

# Firestore "in" and "array_contains_any" filters accept at most 30 values.
IN_BATCH = 30


def project_id_from_credentials_file(credentials_path: Union[Path, str]) -> Optional[str]:
    """Read project_id from a Google service account JSON file if present."""
    path = Path(credentials_path)
    if not path.is_file():
        return None
    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return None
    return data.get("project_id") or data.get("projectId")


def create_async_client(
    project_id: Optional[str] = None,
    credentials_path: Optional[Union[Path, str]] = None,
) -> AsyncClient:
    """AsyncClient from a service account file, or application default credentials."""
    if credentials_path:
        resolved = str(Path(credentials_path).resolve())
        creds = service_account.Credentials.from_service_account_file(resolved)
        project = project_id or project_id_from_credentials_file(resolved)
        client = AsyncClient(project=project, credentials=creds)
    else:
        project = project_id
        client = AsyncClient(project=project)
    logger.info("[startup] Firestore async client initialized (project=%s)", project or "inferred")
    return client
