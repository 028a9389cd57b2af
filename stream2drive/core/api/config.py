"""
API configuration module.

Provides configuration for the Drive endpoint and the transfer engine.
Everything environment-dependent (like the configuration directory) is
resolved once here and injected, never computed inside business logic.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, Mapping
import os

import aiohttp


MIB = 1024 * 1024

# Drive rejects resumable chunks that are not multiples of 256 KiB
# (the final chunk excepted).
CHUNK_GRANULARITY = 256 * 1024

DEFAULT_CHUNK_SIZE = 10 * MIB


def default_config_dir() -> Path:
    """Returns ~/.config/stream2drive (or $XDG_CONFIG_HOME/stream2drive)."""
    base = os.environ.get('XDG_CONFIG_HOME')
    root = Path(base) if base else Path.home() / ".config"
    return root / "stream2drive"


@dataclass
class TimeoutConfig:
    """
    Timeout configuration.

    The transfer engine imposes no timeout of its own; these values are
    handed to aiohttp. No total timeout by default, since a single 10 MiB
    chunk over a slow link can take minutes.
    """
    total: Optional[float] = None
    connect: float = 30.0
    sock_read: float = 300.0
    sock_connect: float = 30.0

    def to_aiohttp_timeout(self) -> aiohttp.ClientTimeout:
        """Convert to aiohttp ClientTimeout."""
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
            sock_connect=self.sock_connect
        )


@dataclass
class RetryConfig:
    """
    Chunk retry configuration.

    Retries are opt-in: with max_retries=0 a failed chunk fails the transfer.
    """
    max_retries: int = 0
    base_delay: float = 1.0
    max_delay: float = 32.0
    exponential_base: float = 2.0

    @property
    def enabled(self) -> bool:
        return self.max_retries > 0

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt number."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class TransferConfig:
    """
    Transfer engine settings.

    Attributes:
        chunk_size: Bytes per request, fixed for a whole session
        compress_seekable_uploads: gzip chunk bodies read from regular files
            (never applied to pipes or stdin)
    """
    chunk_size: int = DEFAULT_CHUNK_SIZE
    compress_seekable_uploads: bool = True

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("Chunk size must be positive")
        if self.chunk_size % CHUNK_GRANULARITY:
            raise ValueError(
                f"Chunk size must be a multiple of {CHUNK_GRANULARITY} bytes"
            )


@dataclass
class APIConfig:
    """
    Complete client configuration.

    Centralizes all options for the Drive endpoint, the transfer engine and
    the on-disk configuration directory.
    """
    api_url: str = 'https://www.googleapis.com/drive/v2/'
    upload_url: str = 'https://www.googleapis.com/upload/drive/v2/'

    user_agent: str = 'stream2drive/1.0.0'

    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)

    extra_headers: Dict[str, str] = field(default_factory=dict)

    config_dir: Path = field(default_factory=default_config_dir)

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> 'APIConfig':
        """
        Create configuration from STREAM2DRIVE_* environment variables.

        Recognized variables:
            STREAM2DRIVE_CONFIG_DIR: configuration directory
            STREAM2DRIVE_CHUNK_SIZE: chunk size in bytes
            STREAM2DRIVE_MAX_RETRIES: opt-in chunk retries
        """
        env = os.environ if environ is None else environ

        if 'STREAM2DRIVE_CONFIG_DIR' in env and 'config_dir' not in kwargs:
            kwargs['config_dir'] = Path(env['STREAM2DRIVE_CONFIG_DIR']).expanduser()

        if 'STREAM2DRIVE_CHUNK_SIZE' in env and 'transfer' not in kwargs:
            kwargs['transfer'] = TransferConfig(
                chunk_size=int(env['STREAM2DRIVE_CHUNK_SIZE'])
            )

        if 'STREAM2DRIVE_MAX_RETRIES' in env and 'retry' not in kwargs:
            kwargs['retry'] = RetryConfig(
                max_retries=int(env['STREAM2DRIVE_MAX_RETRIES'])
            )

        return cls(**kwargs)

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
