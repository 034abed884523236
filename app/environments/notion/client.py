"""
Notion API Client - Read database schemas and create records.

This client provides the three Notion operations the bot depends on.
It handles API requests, error handling, and response parsing.

Key Features:
=============
1. Fetch a database's live column schema by ID
2. Search databases by name (most recently edited first)
3. Create a page (record) in a database
4. Clean error handling with specific exceptions

API Reference:
==============
- Databases: https://developers.notion.com/reference/retrieve-a-database
- Search: https://developers.notion.com/reference/post-search
- Pages: https://developers.notion.com/reference/post-page

Usage Example:
==============
    from app.environments.notion import NotionClient

    client = NotionClient(api_key="secret_xxx")

    handle = await client.get_database("0123-4567...")
    page = await client.create_page(handle.database_id, {...})
    print(page.url)
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.environments.base import EnvironmentService, AuthError, UpstreamError
from app.environments.notion.schemas import (
    CreatedPage,
    DatabaseSearchResult,
    DestinationHandle,
    normalize_id,
)


logger = logging.getLogger("notebridge.environments.notion")


class NotionClient(EnvironmentService):
    """
    Notion API client.

    Every call is a single blocking round-trip; failures are raised
    immediately and never retried.

    Attributes:
        api_key: Notion integration secret
        notion_version: Value of the Notion-Version header
    """

    service_name = "notion"

    # Notion API base URL
    BASE_URL = "https://api.notion.com/v1"

    def __init__(
        self,
        api_key: str,
        notion_version: str = "2022-06-28",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Notion client.

        Args:
            api_key: Notion integration secret
            notion_version: Pinned API version
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.notion_version = notion_version
        self.timeout = timeout
        self._transport = transport

    # -------------------------------------------------------------------------
    # HTTP CLIENT MANAGEMENT
    # -------------------------------------------------------------------------

    def _get_headers(self) -> dict:
        """Get authorization headers for API requests."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": self.notion_version,
            "Content-Type": "application/json",
        }

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        json_body: Optional[dict] = None,
    ) -> dict:
        """
        Make an authenticated request to the Notion API.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path (e.g., "/databases/{id}")
            json_body: JSON request body

        Returns:
            Parsed JSON response

        Raises:
            AuthError: If the integration secret is rejected
            UpstreamError: For any other failure
        """
        url = f"{self.BASE_URL}{endpoint}"

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._get_headers(),
                    json=json_body,
                )
            except httpx.RequestError as e:
                logger.error(f"Network error in Notion API: {e}")
                raise UpstreamError(f"Network error: {e}")

        if response.status_code in (401, 403):
            logger.error(f"Notion API: credential rejected ({response.status_code}) - {response.text}")
            raise AuthError(
                "Notion rejected the integration secret",
                status_code=response.status_code,
                response=response.text,
            )

        if not response.is_success:
            error_detail = response.text
            logger.error(f"Notion API error: {method} {endpoint} {response.status_code} - {error_detail}")
            raise UpstreamError(
                f"Notion request failed: {response.status_code}",
                status_code=response.status_code,
                response=error_detail,
            )

        try:
            return response.json()
        except ValueError:
            logger.error(f"Notion API returned a non-JSON body for {endpoint}")
            raise UpstreamError(
                "Notion returned an unreadable response",
                status_code=response.status_code,
                response=response.text,
            )

    # -------------------------------------------------------------------------
    # DATABASES
    # -------------------------------------------------------------------------

    async def get_database(self, database_id: str) -> DestinationHandle:
        """
        Fetch a database's live schema.

        Args:
            database_id: Database ID, with or without dashes

        Returns:
            DestinationHandle with title column and ordered columns
        """
        database_id = normalize_id(database_id)
        data = await self._make_request("GET", f"/databases/{database_id}")
        handle = DestinationHandle.from_api(data)

        logger.info(
            f"Fetched schema for '{handle.title}' ({len(handle.columns)} columns)",
            extra={"database_id": handle.database_id},
        )
        return handle

    async def search_databases(self, query: str) -> List[DatabaseSearchResult]:
        """
        Search databases shared with the integration.

        Results come back most recently edited first.

        Args:
            query: Free-text name to search for

        Returns:
            Ordered list of candidate databases
        """
        body = {
            "query": query,
            "filter": {"property": "object", "value": "database"},
            "sort": {"direction": "descending", "timestamp": "last_edited_time"},
        }
        data = await self._make_request("POST", "/search", json_body=body)
        results = [DatabaseSearchResult.from_api(item) for item in data.get("results") or []]

        logger.info(f"Search '{query}' returned {len(results)} databases")
        return results

    # -------------------------------------------------------------------------
    # PAGES
    # -------------------------------------------------------------------------

    async def create_page(
        self,
        database_id: str,
        properties: Dict[str, Any],
    ) -> CreatedPage:
        """
        Create a record in a database.

        Args:
            database_id: Target database ID
            properties: Properties already in Notion wire format

        Returns:
            CreatedPage with the new page's URL
        """
        body = {
            "parent": {"database_id": normalize_id(database_id)},
            "properties": properties,
        }
        data = await self._make_request("POST", "/pages", json_body=body)
        page = CreatedPage(id=normalize_id(data.get("id")), url=data.get("url"))

        logger.info(f"Created Notion page: {page.url}")
        return page

    # -------------------------------------------------------------------------
    # VALIDATION
    # -------------------------------------------------------------------------

    async def validate_access(self) -> bool:
        """
        Check that the integration secret is accepted.

        Returns:
            True if GET /users/me succeeds
        """
        try:
            await self._make_request("GET", "/users/me")
            return True
        except (AuthError, UpstreamError):
            return False
