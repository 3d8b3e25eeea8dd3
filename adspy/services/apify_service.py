"""
ApifyService - runs Apify actors and collects their dataset items.

Both ad retrievers go through this service; it owns the client, the
retry policy and the run -> dataset fetch.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from apify_client import ApifyClient
from tenacity import retry, stop_after_attempt, wait_exponential

from ..core.config import Config

logger = logging.getLogger(__name__)


@dataclass
class ApifyRunResult:
    """Result from an Apify actor run."""
    run_id: str
    dataset_id: str
    status: str
    items: List[Dict[str, Any]]
    items_count: int


class ApifyService:
    """
    Generic service for running Apify actors.

    Example usage:
        service = ApifyService()
        result = service.run_actor(
            actor_id="apify/facebook-ads-scraper",
            run_input={"startUrls": [{"url": "..."}], "resultsLimit": 5},
            timeout=300
        )
        print(f"Got {result.items_count} items")
    """

    def __init__(self, apify_token: Optional[str] = None):
        """
        Args:
            apify_token: Apify API token. If not provided, reads from APIFY_TOKEN env var.
        """
        self.apify_token = apify_token or Config.APIFY_TOKEN
        if not self.apify_token:
            logger.warning("APIFY_TOKEN not set - ad retrieval will fail")
            self.client = None
        else:
            self.client = ApifyClient(self.apify_token)

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=2, min=2, max=8), reraise=True)
    def run_actor(
        self,
        actor_id: str,
        run_input: Dict[str, Any],
        timeout: int = 300,
        memory_mbytes: int = 1024
    ) -> ApifyRunResult:
        """
        Run an Apify actor, wait for it and fetch its dataset.

        Args:
            actor_id: Actor identifier (e.g., "apify/facebook-ads-scraper")
            run_input: Input dictionary for the actor
            timeout: Maximum seconds to wait for completion
            memory_mbytes: Memory allocation in MB

        Returns:
            ApifyRunResult with run info and items

        Raises:
            ValueError: If no token is configured
            RuntimeError: If the actor returned no run
        """
        if not self.client:
            raise ValueError("APIFY_TOKEN not configured - check environment variables")

        logger.info(f"Starting Apify actor: {actor_id}")
        logger.debug(f"Input: {run_input}")

        try:
            run = self.client.actor(actor_id).call(
                run_input=run_input,
                timeout_secs=timeout,
                memory_mbytes=memory_mbytes
            )
            if run is None:
                raise RuntimeError(f"Actor {actor_id} returned no run")

            run_id = run["id"]
            dataset_id = run["defaultDatasetId"]
            status = run["status"]
            logger.info(f"Apify run completed: {run_id}, status: {status}")

            items = list(self.client.dataset(dataset_id).iterate_items())
            logger.info(f"Fetched {len(items)} items from dataset {dataset_id}")

            return ApifyRunResult(
                run_id=run_id,
                dataset_id=dataset_id,
                status=status,
                items=items,
                items_count=len(items)
            )

        except Exception as e:
            logger.error(f"Apify actor run failed: {type(e).__name__}: {e}")
            raise
