# dataset_capture/services/account_session.py
import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from dataset_capture.config.upload import UploadConfig
from dataset_capture.repositories.remote_store import RemoteStore
from dataset_capture.repositories.drive_impl.google_drive_remote_store import GoogleDriveRemoteStore

logger = logging.getLogger(__name__)


@dataclass
class AccountSession:
    """Signed-in account identity and the token used for the remote store"""
    email: str
    access_token: str


class AccountSessionProvider:
    """Keeps the signed-in account in a small JSON settings file.

    The remote store is handed out only while a session exists; a missing
    session is an ordinary state that upload jobs wait out.
    """

    def __init__(self, settings_file: str, upload_config: UploadConfig,
                 store_factory: Optional[Callable[[AccountSession], RemoteStore]] = None):
        self.settings_file = settings_file
        self.upload_config = upload_config
        self.store_factory = store_factory or self._drive_store
        self._lock = threading.Lock()

    def _drive_store(self, session: AccountSession) -> RemoteStore:
        return GoogleDriveRemoteStore(self.upload_config, session.access_token)

    def get_session(self) -> Optional[AccountSession]:
        with self._lock:
            if not os.path.isfile(self.settings_file):
                return None
            try:
                with open(self.settings_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Unreadable account settings {self.settings_file}: {e}")
                return None

        email = data.get("signed_in_email")
        token = data.get("access_token")
        if not email or not token:
            return None
        return AccountSession(email=email, access_token=token)

    def is_authenticated(self) -> bool:
        return self.get_session() is not None

    def sign_in(self, email: str, access_token: str) -> AccountSession:
        session = AccountSession(email=email, access_token=access_token)
        with self._lock:
            directory = os.path.dirname(self.settings_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.settings_file, "w", encoding="utf-8") as f:
                json.dump({"signed_in_email": session.email, "access_token": session.access_token}, f)
        logger.info(f"🔑 Signed in as {email}")
        return session

    def sign_out(self):
        with self._lock:
            if os.path.isfile(self.settings_file):
                os.remove(self.settings_file)
        logger.info("Signed out")

    def get_remote_store(self) -> Optional[RemoteStore]:
        """Remote store capability for the current account, None when signed out"""
        session = self.get_session()
        if session is None:
            return None
        return self.store_factory(session)
