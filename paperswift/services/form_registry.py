from __future__ import annotations

import logging
import secrets
import threading
from collections import OrderedDict

from paperswift.services.form_controller import EntityFormController


logger = logging.getLogger(__name__)


class FormRegistry:
    """Keeps rendered form instances so every POST reaches the controller that rendered it."""

    def __init__(self, capacity: int = 256) -> None:
        self.capacity = max(1, int(capacity))
        self._lock = threading.Lock()
        self._forms: OrderedDict[str, EntityFormController] = OrderedDict()

    def open(self, controller: EntityFormController) -> str:
        form_id = secrets.token_urlsafe(16)
        with self._lock:
            self._forms[form_id] = controller
            while len(self._forms) > self.capacity:
                evicted_id, evicted = self._forms.popitem(last=False)
                logger.debug('form_instance_evicted resource=%s form_id=%s', evicted.schema.name, evicted_id)
        return form_id

    def get(self, form_id: str | None, *, resource: str, key: object = None) -> EntityFormController | None:
        if not form_id:
            return None
        with self._lock:
            controller = self._forms.get(form_id)
            if controller is None:
                return None
            if controller.schema.name != resource or str(controller.original_key) != str(key):
                logger.warning('form_instance_mismatch resource=%s key=%s form_id=%s', resource, key, form_id)
                return None
            self._forms.move_to_end(form_id)
            return controller

    def __len__(self) -> int:
        with self._lock:
            return len(self._forms)
