"""Multi-step profile draft kept in durable storage between sessions."""

import logging
from typing import Any, Dict

from fitbody.data_layer.storage import CURRENT_STEP_KEY, PROFILE_DATA_KEY, KeyValueStorage

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("gender", "age", "weight", "height", "goal", "activityLevel")


def default_profile_data() -> Dict[str, Any]:
    return {
        "firstName": "",
        "lastName": "",
        "email": "",
        "password": "",
        "gender": "",
        "age": "",
        "weight": "",
        "weightUnit": "kg",
        "height": "",
        "heightUnit": "cm",
        "goal": "",
        "activityLevel": "",
        "profilePicture": None,
        "bio": "",
        "notifications": True,
        "units": "metric",
    }


class OnboardingStore:
    """The profile-setup draft and which step of the wizard the user is on.

    Every change is written through to storage immediately.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.profile_data = default_profile_data()
        self.current_step = 0
        self._hydrate()

    def _hydrate(self) -> None:
        try:
            saved = self.storage.get_json(PROFILE_DATA_KEY)
        except ValueError:
            logger.warning("Ignoring corrupt saved profile draft")
            saved = None
        if isinstance(saved, dict):
            self.profile_data = saved

        raw_step = self.storage.get(CURRENT_STEP_KEY)
        if raw_step:
            try:
                self.current_step = int(raw_step)
            except ValueError:
                logger.warning(f"Ignoring invalid saved step {raw_step!r}")

    def update(self, **fields: Any) -> Dict[str, Any]:
        """Shallow-merge *fields* into the draft."""
        self.profile_data = {**self.profile_data, **fields}
        self.storage.set_json(PROFILE_DATA_KEY, self.profile_data)
        return self.profile_data

    def next_step(self) -> int:
        return self.go_to_step(self.current_step + 1)

    def prev_step(self) -> int:
        return self.go_to_step(max(0, self.current_step - 1))

    def go_to_step(self, step: int) -> int:
        self.current_step = step
        self.storage.set(CURRENT_STEP_KEY, str(step))
        return step

    def get_setup_data(self) -> Dict[str, Any]:
        return dict(self.profile_data)

    def is_complete(self) -> bool:
        return all(self.profile_data.get(name) for name in REQUIRED_FIELDS)

    def reset(self) -> None:
        """Discard the draft and return to the first step."""
        self.storage.remove(PROFILE_DATA_KEY)
        self.storage.remove(CURRENT_STEP_KEY)
        self.profile_data = default_profile_data()
        self.current_step = 0

