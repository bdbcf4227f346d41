from pathlib import Path
from typing import Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from loguru import logger

from birdsync.config import CREDENTIALS_FILE, SCOPES, TOKEN_FILE


class AuthManager:
    """
    Manages Google Photos API authentication,
    reading/writing the token file, refreshing creds, etc.
    """

    def __init__(self, token_file: Path = TOKEN_FILE, credentials_file: Path = CREDENTIALS_FILE):
        self.token_file = Path(token_file)
        self.credentials_json = Path(credentials_file)
        self.creds: Optional[Credentials] = None

    def can_authenticate(self) -> bool:
        """
        True if there is a cached token or client secrets to start the OAuth flow.
        """
        return self.token_file.exists() or self.credentials_json.exists()

    def authenticate(self) -> Credentials:
        """
        Loads credentials from token file if valid; otherwise performs OAuth flow.
        """
        if self.token_file.exists():
            try:
                self.creds = Credentials.from_authorized_user_file(str(self.token_file), SCOPES)
            except ValueError as e:
                logger.warning(f"Token file {self.token_file} unreadable ({e}). Re-authenticating.")
                self.creds = None

        # If no creds, or invalid/expired creds, do the flow
        if not self.creds or not self.creds.valid:
            refreshed = False
            if self.creds and self.creds.expired and self.creds.refresh_token:
                try:
                    self.creds.refresh(Request())
                    refreshed = True
                except RefreshError as e:
                    logger.warning(f"Token refresh failed ({e}). Re-authenticating.")
            if not refreshed:
                flow = InstalledAppFlow.from_client_secrets_file(
                    str(self.credentials_json),
                    SCOPES
                )
                self.creds = flow.run_local_server(port=0)
            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            self.token_file.write_text(self.creds.to_json())

        return self.creds
