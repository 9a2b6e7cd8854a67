# dataset_capture/repositories/drive_impl/google_drive_remote_store.py
import json
import logging
import os
import uuid
from typing import Dict, Optional

import requests

from dataset_capture.config.upload import UploadConfig
from dataset_capture.errors import NotAuthenticatedError, RemoteStoreError
from dataset_capture.repositories.remote_store import RemoteStore, MIME_TYPE_FOLDER

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    """Escape a literal for a Drive search query"""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveRemoteStore(RemoteStore):
    """Drive v3 REST client authorized with the signed-in account's bearer token"""

    def __init__(self, config: UploadConfig, access_token: str, http: Optional[requests.Session] = None):
        self.config = config
        self.http = http or requests.Session()
        self.http.headers.update({"Authorization": f"Bearer {access_token}"})

    def find_folder(self, name: str, parent_id: str) -> Optional[str]:
        query = (
            f"name='{_quote(name)}' and mimeType='{MIME_TYPE_FOLDER}' "
            f"and '{_quote(parent_id)}' in parents and trashed=false"
        )
        return self._first_id(query)

    def create_folder(self, name: str, parent_id: str) -> str:
        body = {"name": name, "mimeType": MIME_TYPE_FOLDER, "parents": [parent_id]}
        response = self._request(
            "POST", f"{self.config.drive_api_url}/files",
            params={"fields": "id"}, json=body
        )
        return response["id"]

    def find_file(self, name: str, parent_id: str) -> Optional[str]:
        query = (
            f"name='{_quote(name)}' and mimeType!='{MIME_TYPE_FOLDER}' "
            f"and '{_quote(parent_id)}' in parents and trashed=false"
        )
        return self._first_id(query)

    def upload_file(self, local_path: str, parent_id: str, mime_type: str) -> str:
        boundary = f"dataset_capture_{uuid.uuid4().hex}"
        metadata = json.dumps({"name": os.path.basename(local_path), "parents": [parent_id]})

        with open(local_path, "rb") as f:
            content = f.read()

        body = (
            f"--{boundary}\r\n"
            f"Content-Type: application/json; charset=UTF-8\r\n\r\n"
            f"{metadata}\r\n"
            f"--{boundary}\r\n"
            f"Content-Type: {mime_type}\r\n\r\n"
        ).encode("utf-8") + content + f"\r\n--{boundary}--\r\n".encode("utf-8")

        response = self._request(
            "POST", f"{self.config.drive_upload_url}/files",
            params={"uploadType": "multipart", "fields": "id"},
            data=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"}
        )
        return response["id"]

    def _first_id(self, query: str) -> Optional[str]:
        response = self._request(
            "GET", f"{self.config.drive_api_url}/files",
            params={"q": query, "spaces": "drive", "fields": "files(id, name)"}
        )
        files = response.get("files", [])
        return files[0]["id"] if files else None

    def _request(self, method: str, url: str, **kwargs) -> Dict:
        try:
            response = self.http.request(method, url, timeout=self.config.http_timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise RemoteStoreError(f"Drive request failed: {e}") from e

        if response.status_code == 401:
            raise NotAuthenticatedError("Drive rejected the account token. Please sign in again.")
        if response.status_code >= 400:
            raise RemoteStoreError(f"Drive API error {response.status_code}: {response.text[:200]}")

        try:
            return response.json()
        except ValueError as e:
            raise RemoteStoreError(f"Invalid Drive response: {e}") from e
