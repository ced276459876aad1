# tests/test_end_to_end.py
import asyncio

import httpx

from catalog_app.main import CatalogPage, catalog_session
from catalog_app.utils.images import CandidateFile
from catalog_app.views.collection import EMPTY, POPULATED


def test_create_product_refreshes_collection(service, make_sample_jpeg_bytes):
    """
    Full flow:
      - mount page against an empty catalog -> empty state
      - open the form, fill it, stage an image and submit
      - the generation bump makes the collection re-fetch and show the new product
    """
    jpg = make_sample_jpeg_bytes()

    async def scenario():
        transport = httpx.ASGITransport(app=service.app)
        async with catalog_session(base_url="http://testserver", transport=transport) as page:
            assert page.collection.state == EMPTY
            form = page.open_creation()
            form.update(name="Lamp", price="25", stock_quantity="2", category="Lighting")
            await form.stage_image(CandidateFile("lamp.jpg", "image/jpeg", jpg))
            product = await page.submit_creation()
            fetched = await page.get_product(product.id)
            return page, product, fetched

    page, product, fetched = asyncio.run(scenario())
    assert page.coordinator.generation == 1
    assert page.collection.generation == 1
    assert page.collection.state == POPULATED
    assert page.collection.header == "Products (1)"
    card = page.collection.cards()[0]
    assert card.title == "Lamp"
    assert card.image_uri.startswith("data:image/jpeg;base64,")
    assert fetched.image_bytes() == jpg
    assert service.list_calls == 2
    assert page.creation.draft.is_empty()


def test_failed_submit_does_not_refresh(service):
    async def scenario():
        transport = httpx.ASGITransport(app=service.app)
        async with catalog_session(base_url="http://testserver", transport=transport) as page:
            service.fail_status = 400
            form = page.open_creation()
            form.update(name="Lamp", price="25", stock_quantity="2")
            result = await page.submit_creation()
            return page, result

    page, result = asyncio.run(scenario())
    assert result is None
    assert page.coordinator.generation == 0
    assert service.list_calls == 1
    assert page.creation.is_open is True
    assert page.creation.draft.name == "Lamp"


def test_session_without_mount_leaves_collection_untouched(service):
    async def scenario():
        async with catalog_session(base_url="http://testserver",
                                   transport=httpx.ASGITransport(app=service.app), mount=False) as page:
            greeting = await page.client.hello()
            return page, greeting

    page, greeting = asyncio.run(scenario())
    assert greeting == "Hello World"
    assert service.list_calls == 0
    assert isinstance(page, CatalogPage)
