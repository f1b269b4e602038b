"""Imageboard JSON API client.

Implements the core FetcherPort over the read-only 4chan JSON API.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from adapters.chan_mapper import catalog_threads, records_from_thread
from core.config import FetchConfig
from core.errors import FetchError

LOGGER = logging.getLogger(__name__)

API_ROOT = "https://a.4cdn.org"


class ChanClient:
    """Fetcher adapter that reads catalog and thread JSON for one board."""

    def __init__(self, config: FetchConfig) -> None:
        self._config = config

    def _endpoint(self, path: str) -> str:
        return f"{API_ROOT}/{self._config.board}/{path}"

    def _get_json(self, url: str) -> Any:
        request = urllib.request.Request(url, method="GET")
        request.add_header("User-Agent", self._config.user_agent)
        request.add_header("Accept", "application/json")
        # Blocking calls are fine: lineages are fetched one at a time.
        with urllib.request.urlopen(request, timeout=self._config.timeout) as response:
            return json.loads(response.read().decode("utf-8"))

    def fetch_catalog(self) -> list[dict]:
        """Return thread summaries for the whole catalog."""

        url = self._endpoint("catalog.json")
        try:
            payload = self._get_json(url)
        except urllib.error.HTTPError as e:
            raise FetchError(f"Catalog request failed with HTTP {e.code}") from e
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise FetchError(f"Catalog request failed: {e}") from e
        return catalog_threads(payload)

    def fetch_thread(self, lineage_id: int) -> list[dict]:
        """Return message records for one thread; a pruned thread yields none."""

        url = self._endpoint(f"thread/{lineage_id}.json")
        try:
            payload = self._get_json(url)
        except urllib.error.HTTPError as e:
            if e.code == 404:
                LOGGER.info("Thread %s is gone upstream", lineage_id)
                return []
            raise FetchError(f"Thread {lineage_id} request failed with HTTP {e.code}") from e
        except (urllib.error.URLError, OSError, ValueError) as e:
            raise FetchError(f"Thread {lineage_id} request failed: {e}") from e
        return records_from_thread(payload)
