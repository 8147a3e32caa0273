"""
Reference text lookup for scientific-name enrichment.

Queries the Wikipedia REST page-summary endpoint for a common name and pulls
the first binomial out of the summary extract.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from wildlife_id.core.exceptions import ReferenceLookupError
from wildlife_id.ml.species_reference import SpeciesReferenceTable

logger = logging.getLogger(__name__)


DEFAULT_LOOKUP_URL = "https://en.wikipedia.org/api/rest_v1"


class ReferenceLookupService:
    """
    Best-effort scientific-name lookup against a page-summary service.

    Usage:
        lookup = ReferenceLookupService(client=client)
        scientific = await lookup.find_scientific_name("Rock Pigeon")
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEFAULT_LOOKUP_URL,
        timeout: float = 5.0,
    ):
        self._client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def summary_url(self, title: str) -> str:
        return f"{self.base_url}/page/summary/{quote(title, safe='')}"

    async def fetch_summary(self, title: str) -> str:
        """
        Fetch the summary extract for a page title.

        Raises:
            ReferenceLookupError: On transport failure, non-200 status or a
                body without an ``extract``
        """
        url = self.summary_url(title)
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            raise ReferenceLookupError(f"Reference lookup for '{title}' failed: {e}") from e

        if response.status_code != 200:
            raise ReferenceLookupError(
                f"Reference lookup for '{title}' returned {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ReferenceLookupError(f"Reference lookup response is not JSON: {e}") from e

        extract = data.get("extract") if isinstance(data, dict) else None
        if not isinstance(extract, str) or not extract:
            raise ReferenceLookupError(f"No summary extract for '{title}'")

        return extract

    async def find_scientific_name(self, common_name: str) -> Optional[str]:
        """
        Look up a scientific name for a common name.

        Returns:
            The first binomial found in the summary text, or None if the
            summary has none

        Raises:
            ReferenceLookupError: If the summary could not be retrieved
        """
        extract = await self.fetch_summary(common_name)
        scientific_name = SpeciesReferenceTable.extract_binomial(extract)
        if scientific_name:
            logger.info(f"Found scientific name from reference lookup: {scientific_name}")
        return scientific_name
