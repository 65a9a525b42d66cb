"""
Fetcher Module - Retrieve raw source documents with retries and caching.
========================================================================

Given a stable FetchRequest and the Institution it belongs to, returns the
raw response bytes or raises a FetchError tagged with the institution:
- Automatic retries with exponential backoff on network errors
- Per-request timeout to bound a run's worst case
- Optional file-based cache of raw bytes for offline development
"""

import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from novaxfer.shared.config import get_settings
from novaxfer.shared.errors import FetchError
from novaxfer.shared.logging import get_logger
from novaxfer.shared.schemas import FetchRequest, Institution
from novaxfer.shared.utils import canonical_json, compute_hash, ensure_directory

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Data Classes
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class FetcherStats:
    """Counters for one Fetcher; network outcomes exclude cache hits."""

    total_requests: int = 0
    cache_hits: int = 0
    successful: int = 0
    failed: int = 0
    bytes_downloaded: int = 0


# ─────────────────────────────────────────────────────────────────────────────
# Fetcher Class
# ─────────────────────────────────────────────────────────────────────────────


class Fetcher:
    """
    HTTP fetcher shared by all indexers in a run.

    Safe to use from several worker threads: each thread gets its own
    requests session, and statistics are updated under a lock.

    Example:
        >>> with Fetcher() as fetcher:
        ...     data = fetcher.fetch(FetchRequest(url="https://example.edu/t.pdf"), institution)
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        user_agent: Optional[str] = None,
        cache_enabled: Optional[bool] = None,
        cache_expiry_days: Optional[int] = None,
    ):
        """Arguments left as None take their value from the ``fetch`` settings."""
        settings = get_settings()
        fetch_config = settings.fetch

        self.cache_dir = cache_dir or settings.resolved_paths.raw_dir
        self.timeout = timeout if timeout is not None else fetch_config.timeout
        self.max_retries = max_retries if max_retries is not None else fetch_config.max_retries
        self.user_agent = user_agent or fetch_config.user_agent
        self.cache_enabled = (
            cache_enabled if cache_enabled is not None else fetch_config.cache_enabled
        )
        self.cache_expiry_days = (
            cache_expiry_days if cache_expiry_days is not None else fetch_config.cache_expiry_days
        )

        self.retry_min_wait = fetch_config.retry_min_wait
        self.retry_max_wait = fetch_config.retry_max_wait

        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._lock = threading.Lock()
        self.stats = FetcherStats()

        if self.cache_enabled:
            ensure_directory(self.cache_dir)

        logger.debug(
            f"Fetcher initialized: cache={self.cache_enabled}, "
            f"timeout={self.timeout}s, retries={self.max_retries}"
        )

    @property
    def session(self) -> requests.Session:
        """Get or create the requests session for the current thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(
                {
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/pdf,*/*;q=0.8",
                    "Accept-Language": "en-US,en;q=0.5",
                }
            )
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    # ─────────────────────────────────────────────────────────────────────────
    # Cache
    # ─────────────────────────────────────────────────────────────────────────

    def _get_cache_path(self, request: FetchRequest, institution: Institution) -> Path:
        """Cache path: cache_dir/<acronym>/<hash of request>.bin"""
        request_hash = compute_hash(canonical_json(request.model_dump()))[:16]
        cache_subdir = self.cache_dir / institution.acronym.lower()
        ensure_directory(cache_subdir)
        return cache_subdir / f"{request_hash}.bin"

    def _is_fresh(self, cache_path: Path) -> bool:
        # expiry of 0 keeps payloads forever
        if self.cache_expiry_days <= 0:
            return True
        age_days = (time.time() - cache_path.stat().st_mtime) / 86400
        return age_days < self.cache_expiry_days

    def _load_from_cache(self, request: FetchRequest, institution: Institution) -> Optional[bytes]:
        cache_path = self._get_cache_path(request, institution)
        if not cache_path.is_file():
            return None
        if not self._is_fresh(cache_path):
            logger.debug(f"Stale cached payload for {institution.acronym}: {cache_path.name}")
            return None

        try:
            data = cache_path.read_bytes()
        except OSError as e:
            logger.warning(f"Unreadable cached payload {cache_path}: {e}")
            return None

        with self._lock:
            self.stats.cache_hits += 1
        logger.debug(f"Serving {institution.acronym} from cache")
        return data

    def _save_to_cache(self, request: FetchRequest, institution: Institution, data: bytes) -> None:
        cache_path = self._get_cache_path(request, institution)
        try:
            cache_path.write_bytes(data)
        except OSError as e:
            logger.warning(f"Could not cache {request.url}: {e}")

    def clear_cache(self) -> int:
        """Remove cached payloads for every institution; returns how many were removed."""
        payloads = list(self.cache_dir.rglob("*.bin")) if self.cache_dir.exists() else []
        for payload in payloads:
            payload.unlink()
        logger.info(f"Removed {len(payloads)} cached payloads from {self.cache_dir}")
        return len(payloads)

    # ─────────────────────────────────────────────────────────────────────────
    # Fetching
    # ─────────────────────────────────────────────────────────────────────────

    def _make_request(self, request: FetchRequest) -> requests.Response:
        """Send the request, retrying network errors with exponential backoff."""

        @retry(
            retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(min=self.retry_min_wait, max=self.retry_max_wait),
            before_sleep=lambda retry_state: logger.warning(
                f"Retry {retry_state.attempt_number}/{self.max_retries} for {request.url}"
            ),
            reraise=True,
        )
        def _request_with_retry() -> requests.Response:
            return self.session.request(
                request.method,
                request.url,
                params=dict(request.params) or None,
                headers=dict(request.headers) or None,
                timeout=self.timeout,
            )

        return _request_with_retry()

    def fetch(self, request: FetchRequest, institution: Institution) -> bytes:
        """
        Fetch the raw bytes described by ``request``.

        Args:
            request: Stable request description from the indexer
            institution: Institution the request belongs to, used to label errors

        Returns:
            Raw response body

        Raises:
            FetchError: On network failure, timeout, or a non-2xx status
        """
        with self._lock:
            self.stats.total_requests += 1

        if self.cache_enabled:
            cached = self._load_from_cache(request, institution)
            if cached is not None:
                return cached

        logger.info(f"Fetching {institution.acronym}: {request.url}")

        try:
            response = self._make_request(request)
        except requests.RequestException as e:
            with self._lock:
                self.stats.failed += 1
            raise FetchError(institution.acronym, f"request to {request.url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            with self._lock:
                self.stats.failed += 1
            raise FetchError(
                institution.acronym,
                f"{request.url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        data = response.content
        with self._lock:
            self.stats.successful += 1
            self.stats.bytes_downloaded += len(data)

        if self.cache_enabled:
            self._save_to_cache(request, institution, data)
        return data

    def close(self) -> None:
        """Close every session opened by this fetcher."""
        with self._lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()
        self._local = threading.local()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        self.close()
