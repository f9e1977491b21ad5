"""Client for invalidating the storefront's cached event pages."""
import logging
import time

import requests

logger = logging.getLogger(__name__)


class RevalidationClient:
    """Client for the storefront cache revalidation endpoint."""

    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, url: str, tag: str = 'events', timeout: int = 30):
        """
        Initialize the revalidation client.

        Args:
            url: Revalidation endpoint URL
            tag: Cache tag to invalidate (default: events)
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.url = url
        self.tag = tag
        self.timeout = timeout

    def revalidate(self) -> dict:
        """
        Ask the storefront to invalidate the cache tag, with retry logic.

        Returns:
            Decoded JSON response body

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                logger.info(
                    f"Revalidating cache tag '{self.tag}' "
                    f"(attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                response = requests.post(
                    self.url,
                    json={'tag': self.tag},
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.json()

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Revalidation failed (attempt {attempt + 1}/"
                        f"{self.MAX_RETRIES}): {e}. Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} revalidation attempts failed. "
                        f"Last error: {e}"
                    )
                    raise
