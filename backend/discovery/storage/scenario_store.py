"""
Scenario Store - Keyed, read-mostly access to scenario definitions.
Scenarios are JSON documents under scenarios/<id>.json.
"""

import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from ..models import Scenario
from .interface import StorageInterface
from .seed_scenarios import DEFAULT_SCENARIOS

logger = logging.getLogger(__name__)


class ScenarioStore:
    """Loads scenarios by id. Unknown or unreadable scenarios read as None."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.scenarios_dir = "scenarios"

    def _path(self, scenario_id: str) -> str:
        return f"{self.scenarios_dir}/{scenario_id}.json"

    async def seed_defaults(self, overwrite: bool = False) -> int:
        """
        Write the built-in scenarios.

        Args:
            overwrite: Replace scenarios that already exist

        Returns:
            int: Number of scenarios written
        """
        written = 0
        for data in DEFAULT_SCENARIOS:
            scenario = Scenario.model_validate(data)
            if not overwrite and await self.storage.exists(self._path(scenario.id)):
                continue
            if await self.save(scenario):
                written += 1
        if written:
            logger.info(f"Seeded {written} scenario(s)")
        return written

    async def save(self, scenario: Scenario) -> bool:
        return await self.storage.save(self._path(scenario.id), scenario.model_dump_json(indent=2))

    async def get(self, scenario_id: str) -> Optional[Scenario]:
        content = await self.storage.load(self._path(scenario_id))
        if content is None:
            return None
        try:
            return Scenario.model_validate(json.loads(content.decode('utf-8')))
        except (ValueError, ValidationError) as e:
            logger.error(f"Scenario {scenario_id} is unreadable: {e}")
            return None

    async def list(self) -> List[Scenario]:
        scenarios = []
        for path in await self.storage.list(self.scenarios_dir, pattern="*.json"):
            scenario_id = path.split('/')[-1].removesuffix('.json')
            scenario = await self.get(scenario_id)
            if scenario is not None:
                scenarios.append(scenario)
        return scenarios
