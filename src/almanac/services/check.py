import logging
from typing import List, Tuple

from ..domain.errors import AlmanacError
from ..domain.models import CheckResult
from .info import InfoService

logger = logging.getLogger(__name__)


def parse_requirement(requirement: str) -> Tuple[str, str]:
    """
    split 'name@version' into its parts.

    scoped names keep their leading '@', e.g. '@types/node@20.1.0'.
    """
    name, sep, version = requirement.rpartition("@")
    if not sep or not name or not version:
        raise ValueError(f"expected NAME@VERSION, got '{requirement}'")
    return name, version


class CheckService:
    """compares locally known versions with the latest registry versions."""

    def __init__(self, info_service: InfoService):
        self.info_service = info_service
        self.renderer = info_service.renderer

    async def check(self, requirements: List[Tuple[str, str]]) -> List[CheckResult]:
        """
        check each (name, version) pair against the registry, one at a time.

        a failing package is reported and the remaining ones are still checked.
        """
        self.renderer.append_line(
            f"Checking {len(requirements)} package(s) against {self.info_service.fetcher.registry_url}"
        )
        results = []
        for name, current in requirements:
            spinner = self.renderer.start_spinner(f"Checking {name}")
            try:
                package = await self.info_service.get_package(name)
            except AlmanacError as e:
                logger.debug(f"check of '{name}' failed: {e}")
                result = CheckResult(name=name, current=current, error=str(e))
                self.renderer.stop_spinner(spinner, f"{name}: failed ({e})")
            else:
                result = CheckResult(name=name, current=current, latest=package.latest_version)
                self.renderer.stop_spinner(spinner, self._describe(result))
            results.append(result)
        return results

    @staticmethod
    def _describe(result: CheckResult) -> str:
        if not result.latest:
            return f"{result.name}: no latest version published"
        if result.outdated:
            return f"{result.name}: {result.current} -> {result.latest}"
        return f"{result.name}: up to date ({result.current})"
