# catalog_app/views/collection.py
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from catalog_app.config import settings
from catalog_app.core.errors import CatalogError
from catalog_app.core.refresh import RefreshCoordinator
from catalog_app.core.state_machine import StateMachine
from catalog_app.models.product import Product
from catalog_app.services.catalog_client import CatalogClient
from catalog_app.services.notifications import Notifier

logger = logging.getLogger(__name__)

UNMOUNTED = "unmounted"
LOADING = "loading"
ERROR = "error"
EMPTY = "empty"
POPULATED = "populated"


def format_price(price: float, symbol: Optional[str] = None) -> str:
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    sign = "-" if price < 0 else ""
    return f"{sign}{symbol}{abs(price):,.2f}"


def format_date(value: Optional[date]) -> str:
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


@dataclass(frozen=True)
class ProductCard:
    id: int
    title: str
    subtitle: str
    description: str
    badge: str
    price: str
    stock: str
    released: str
    image_uri: Optional[str]
    can_add_to_cart: bool

    @classmethod
    def from_product(cls, p: Product) -> "ProductCard":
        in_stock = p.product_available and p.stock_quantity > 0
        return cls(
            id=p.id,
            title=p.name,
            subtitle=" • ".join(part for part in (p.brand, p.category) if part),
            description=p.description,
            badge="Available" if p.product_available else "Out of Stock",
            price=format_price(p.price),
            stock=f"Stock: {p.stock_quantity}",
            released=f"Released: {format_date(p.release_date)}" if p.release_date else "",
            image_uri=p.image_data_uri,
            can_add_to_cart=in_stock,
        )


@dataclass(frozen=True)
class ErrorDisplay:
    message: str
    title: str = "Something went wrong"
    retry_available: bool = True


class CollectionView:
    """
    Fetches and holds the product list.

    unmounted -> loading -> populated | empty | error, and back to loading on
    every refresh. Each fetch replaces the held list; a failed fetch clears it.
    """

    ALLOWED_TRANSITIONS = {
        UNMOUNTED: [LOADING],
        LOADING: [POPULATED, EMPTY, ERROR],
        POPULATED: [LOADING],
        EMPTY: [LOADING],
        ERROR: [LOADING],
    }

    def __init__(self, client: CatalogClient, notifier: Optional[Notifier] = None):
        self.client = client
        self.notifier = notifier or Notifier()
        self.products: List[Product] = []
        self.error: Optional[CatalogError] = None
        self.generation: Optional[int] = None
        self._ticket = 0
        self._sm = StateMachine(state=UNMOUNTED, allowed_transitions=self.ALLOWED_TRANSITIONS, name="collection")
        self._sm.register_after(LOADING, EMPTY, self._announce_empty)
        self._sm.register_after(LOADING, ERROR, self._announce_error)

    @property
    def state(self) -> str:
        return self._sm.state

    @property
    def history(self):
        return list(self._sm.history)

    @property
    def can_refresh(self) -> bool:
        return self.state not in (UNMOUNTED, LOADING)

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error else None

    def _announce_empty(self, entry) -> None:
        self.notifier.info("No products found", "Get started by adding your first product.")

    def _announce_error(self, entry) -> None:
        self.notifier.error("Failed to load products", entry["meta"].get("message"))

    async def _load(self) -> None:
        self._ticket += 1
        ticket = self._ticket
        self._sm.apply(LOADING, meta={"ticket": ticket})
        try:
            products = await self.client.list_products()
        except CatalogError as e:
            if ticket != self._ticket:
                logger.debug("Discarding stale listing failure (ticket %s)", ticket)
                return
            # stale data cannot be told apart from bad data, so drop it
            self.products = []
            self.error = e
            self._sm.apply(ERROR, meta={"message": str(e)})
            return
        except Exception as e:
            if ticket == self._ticket:
                self.products = []
                self.error = None
                self._sm.apply(ERROR, meta={"message": repr(e)})
            raise
        if ticket != self._ticket:
            logger.debug("Discarding stale listing (ticket %s, latest %s)", ticket, self._ticket)
            return
        self.products = list(products)
        self.error = None
        self._sm.apply(POPULATED if self.products else EMPTY, meta={"count": len(self.products)})

    async def mount(self, generation: Optional[int] = None) -> None:
        self.generation = generation
        await self._load()

    async def refresh(self) -> bool:
        """Manual refresh. A no-op while a fetch is already running."""
        if not self.can_refresh:
            logger.debug("Refresh ignored in state %s", self.state)
            return False
        await self._load()
        return True

    async def sync(self, generation: int) -> bool:
        """
        Coordinated refresh: re-fetch when `generation` differs from the last one
        seen. Supersedes a fetch that is still in flight.
        """
        if generation == self.generation and self.state != UNMOUNTED:
            return False
        self.generation = generation
        await self._load()
        return True

    async def watch(self, coordinator: RefreshCoordinator) -> None:
        """Follow the coordinator until cancelled, re-fetching on every bump."""
        if self.state == UNMOUNTED:
            await self.mount(coordinator.generation)
        while True:
            generation = await coordinator.wait_for_change(self.generation)
            await self.sync(generation)

    # --- rendering data ---

    @property
    def header(self) -> str:
        return f"Products ({len(self.products)})"

    def cards(self) -> List[ProductCard]:
        return [ProductCard.from_product(p) for p in self.products]

    def error_display(self) -> Optional[ErrorDisplay]:
        if self.state != ERROR:
            return None
        return ErrorDisplay(message=self.error_message or "Failed to fetch products")
