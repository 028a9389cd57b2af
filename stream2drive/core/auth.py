"""
Credentials for authorizing Drive requests.

The OAuth authorization-code exchange and token refresh are delegated to
an external tool; stream2drive only consumes the resulting access token.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional
import json
import os

from .exceptions import DriveAuthError
from .logging import get_logger

logger = get_logger(__name__)

TOKEN_FILE = 'token.json'
TOKEN_ENV = 'STREAM2DRIVE_ACCESS_TOKEN'


@dataclass(frozen=True)
class TokenCredentials:
    """
    A bearer access token.

    Attributes:
        access_token: OAuth 2.0 access token with a Drive scope
        token_type: Authorization scheme
    """
    access_token: str
    token_type: str = 'Bearer'

    def __post_init__(self):
        if not self.access_token:
            raise DriveAuthError("Access token is empty")

    def apply(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Add the Authorization header to a header dict (in place)."""
        headers['Authorization'] = f"{self.token_type} {self.access_token}"
        return headers

    def __repr__(self) -> str:
        return f"TokenCredentials(token_type={self.token_type!r}, access_token='***')"


def load_credentials(
    config_dir: Path,
    environ: Optional[Mapping[str, str]] = None
) -> TokenCredentials:
    """
    Load the access token.

    Looks at $STREAM2DRIVE_ACCESS_TOKEN first, then <config_dir>/token.json
    ({"access_token": "...", "token_type": "Bearer"}).

    Raises:
        DriveAuthError: If no usable token is found
    """
    env = os.environ if environ is None else environ

    token = env.get(TOKEN_ENV)
    if token:
        logger.debug(f"Using access token from ${TOKEN_ENV}")
        return TokenCredentials(token.strip())

    token_path = Path(config_dir) / TOKEN_FILE
    if not token_path.is_file():
        raise DriveAuthError(
            f"No access token: set ${TOKEN_ENV} or create {token_path}"
        )

    try:
        data = json.loads(token_path.read_text())
    except (OSError, ValueError) as e:
        raise DriveAuthError(f"Cannot read {token_path}: {e}") from e

    if not isinstance(data, dict) or not data.get('access_token'):
        raise DriveAuthError(f"{token_path} has no access_token")

    logger.debug(f"Using access token from {token_path}")
    return TokenCredentials(
        access_token=data['access_token'],
        token_type=data.get('token_type', 'Bearer')
    )
