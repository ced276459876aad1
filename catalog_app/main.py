# catalog_app/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx

from catalog_app.config import settings
from catalog_app.core.refresh import RefreshCoordinator
from catalog_app.models.product import Product
from catalog_app.services.catalog_client import CatalogClient
from catalog_app.services.notifications import Notifier
from catalog_app.views.collection import CollectionView
from catalog_app.workflows.creation import CreationWorkflow

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


class CatalogPage:
    """
    Hosting context for the product manager: one client, one refresh
    coordinator, the creation workflow and the collection view. The two
    components only meet through the coordinator's generation token.
    """

    def __init__(self, client: CatalogClient, notifier: Optional[Notifier] = None):
        self.client = client
        self.notifier = notifier or Notifier()
        self.coordinator = RefreshCoordinator()
        self.creation = CreationWorkflow(client, coordinator=self.coordinator, notifier=self.notifier)
        self.collection = CollectionView(client, notifier=self.notifier)

    async def mount(self) -> None:
        await self.collection.mount(self.coordinator.generation)

    def open_creation(self) -> CreationWorkflow:
        self.creation.open()
        return self.creation

    async def submit_creation(self) -> Optional[Product]:
        product = await self.creation.submit()
        # a bump from a successful submit makes the view re-fetch
        await self.collection.sync(self.coordinator.generation)
        return product

    async def get_product(self, product_id: int) -> Product:
        return await self.client.get_product(product_id)


@asynccontextmanager
async def catalog_session(base_url: Optional[str] = None,
                          transport: Optional[httpx.AsyncBaseTransport] = None,
                          mount: bool = True):
    """
    Build a CatalogPage, mount its collection and close the HTTP client on exit.

      async with catalog_session() as page:
          print(page.collection.header)
    """
    client = CatalogClient(base_url=base_url, transport=transport)
    page = CatalogPage(client)
    try:
        if mount:
            await page.mount()
        yield page
    finally:
        await client.aclose()
        logger.debug("Closed catalog session for %s", client.base_url)
