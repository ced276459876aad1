"""Prints the current catalog from the configured catalog service."""
import asyncio
import sys

from catalog_app.main import catalog_session, configure_logging


async def main(base_url=None) -> int:
    async with catalog_session(base_url=base_url) as page:
        view = page.collection
        if view.error_display():
            print(f"Error: {view.error_message}")
            return 1
        print(view.header)
        for card in view.cards():
            print(f"  #{card.id} {card.title} [{card.badge}] {card.price} {card.stock}")
    return 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None)))
