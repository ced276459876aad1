# catalog_app/workflows/creation.py
import logging
from typing import Any, Optional

from catalog_app.core.errors import CatalogError, DraftValidationError, ImageTooLarge, ImageValidationError
from catalog_app.core.refresh import RefreshCoordinator
from catalog_app.core.state_machine import StateMachine
from catalog_app.models.product import Draft, Product
from catalog_app.schemas.product import parse_draft
from catalog_app.services.catalog_client import CatalogClient
from catalog_app.services.notifications import Notifier
from catalog_app.utils.images import ImageStaging, StagedImage

logger = logging.getLogger(__name__)

IDLE = "idle"
VALIDATING = "validating"
SUBMITTING = "submitting"
SUCCEEDED = "succeeded"
FAILED = "failed"


class CreationWorkflow:
    """
    Drives the "add product" form: holds the Draft and staged image, validates
    on submit, sends one creation request at a time and bumps the refresh
    coordinator when the service accepts the product.

    Lifecycle:
      idle -> validating -> submitting -> succeeded
                  |              |
                  +--> failed <--+
    A failed or succeeded workflow goes back to validating on the next submit.
    """

    ALLOWED_TRANSITIONS = {
        IDLE: [VALIDATING],
        VALIDATING: [SUBMITTING, FAILED],
        SUBMITTING: [SUCCEEDED, FAILED],
        SUCCEEDED: [VALIDATING, IDLE],
        FAILED: [VALIDATING, IDLE],
    }

    def __init__(self, client: CatalogClient, coordinator: Optional[RefreshCoordinator] = None,
                 staging: Optional[ImageStaging] = None, notifier: Optional[Notifier] = None):
        self.client = client
        self.coordinator = coordinator or RefreshCoordinator()
        self.staging = staging or ImageStaging()
        self.notifier = notifier or Notifier()
        self.draft = Draft()
        self.is_open = False
        self.error: Optional[Exception] = None
        self._sm = StateMachine(state=IDLE, allowed_transitions=self.ALLOWED_TRANSITIONS, name="creation")

    @property
    def state(self) -> str:
        return self._sm.state

    @property
    def history(self):
        return list(self._sm.history)

    @property
    def is_submitting(self) -> bool:
        return self.state == SUBMITTING

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error else None

    @property
    def staged_image(self) -> Optional[StagedImage]:
        return self.staging.staged

    # --- form surface ---

    def open(self) -> None:
        self.is_open = True

    def update_field(self, name: str, value: Any) -> None:
        self.draft.set(name, value)

    def update(self, **values: Any) -> None:
        for name, value in values.items():
            self.draft.set(name, value)

    async def stage_image(self, candidate) -> Optional[StagedImage]:
        """Stage an image; a rejected file sets the inline error and keeps the previous image."""
        try:
            staged = await self.staging.stage(candidate)
        except ImageValidationError as e:
            self.error = e
            title = "File too large" if isinstance(e, ImageTooLarge) else "Invalid file type"
            self.notifier.error(title, str(e))
            return None
        if staged is not None:
            self.error = None
            self.notifier.success("Image selected successfully")
        return staged

    def remove_image(self) -> None:
        self.staging.unstage()
        self.notifier.info("Image removed")

    def reset(self) -> None:
        self.draft = Draft()
        self.staging.unstage()
        self.error = None

    def cancel(self) -> bool:
        """Close the form and discard the draft and staged image. Unavailable while submitting."""
        if self.is_submitting:
            logger.info("Cancel ignored: creation request in flight")
            return False
        self.reset()
        self.is_open = False
        if self.state != IDLE:
            self._sm.apply(IDLE, meta={"reason": "cancel"})
        return True

    # --- submission ---

    async def submit(self) -> Optional[Product]:
        """
        Validate the draft and create the product. Returns the created Product,
        or None when validation failed, the service failed, or a request is
        already in flight. Failures leave the draft and staged image as they were.
        """
        if self.is_submitting:
            logger.debug("Submit ignored: creation request in flight")
            return None

        self._sm.apply(VALIDATING)
        try:
            payload = parse_draft(self.draft)
        except DraftValidationError as e:
            self.error = e
            self._sm.apply(FAILED, meta={"errors": e.errors})
            self.notifier.error("Validation Error", str(e))
            return None

        staged = self.staging.staged
        self.error = None
        self._sm.apply(SUBMITTING, meta={"name": payload.name, "with_image": staged is not None})
        loading = self.notifier.loading("Adding product...", "Please wait while we save your product.")
        try:
            product = await self.client.create_product(payload, staged)
        except CatalogError as e:
            self.error = e
            self._sm.apply(FAILED, meta={"error": str(e)})
            self.notifier.dismiss(loading.id)
            self.notifier.error("Failed to Add Product", str(e))
            return None
        except Exception as e:
            self._sm.apply(FAILED, meta={"error": repr(e)})
            self.notifier.dismiss(loading.id)
            raise

        self.notifier.dismiss(loading.id)
        self.notifier.success("Product Added Successfully!",
                              f"{payload.name} has been added to your inventory.")
        self._sm.apply(SUCCEEDED, meta={"id": product.id})
        self.reset()
        self.is_open = False
        self.coordinator.bump()
        logger.info("Created product %s (%s)", product.id, product.name)
        return product
