"""
Weather reports read from the MeteoSwiss product output tree.

Layout::

    <root>/<language dir>/<region>/versions.json
    <root>/<language dir>/<region>/<currentVersionDirectory>/textproduct_<lang>.xhtml

English reports live in the German directory.
"""

import json
import logging
from pathlib import Path
from typing import Union

import aiofiles

from ..exceptions import ContentError
from ..models import Language, Region, WeatherReport
from ..parsers import parse_weather_report_html

logger = logging.getLogger(__name__)

LANGUAGE_DIRECTORIES = {
    Language.EN: "de",
    Language.DE: "de",
    Language.FR: "fr",
    Language.IT: "it",
}


class WeatherReportService:
    """Loads the latest weather report for a region and language."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def report_directory(self, region: Region, language: Language) -> Path:
        return self.root / LANGUAGE_DIRECTORIES[language] / region.value

    async def current_report_path(self, region: Region, language: Language) -> Path:
        """Resolve the report file of the current version."""
        report_dir = self.report_directory(region, language)
        async with aiofiles.open(report_dir / "versions.json", encoding="utf-8") as f:
            versions = json.loads(await f.read())
        current = versions["currentVersionDirectory"]
        return report_dir / current / f"textproduct_{language.value}.xhtml"

    async def get_latest_report(
        self, region: Union[Region, str], language: Union[Language, str] = Language.EN
    ) -> WeatherReport:
        """
        Get the latest weather report.

        Raises:
            ContentError: If the report cannot be located or read
        """
        region = Region(region)
        language = Language(language)

        try:
            path = await self.current_report_path(region, language)
            logger.debug("Reading weather report %s", path)
            async with aiofiles.open(path, encoding="utf-8") as f:
                html = await f.read()
        except (OSError, ValueError, KeyError) as e:
            logger.error(
                "Error reading weather report for %s in %s: %s",
                region.value,
                language.value,
                e,
            )
            raise ContentError(
                f'Failed to get weather report for region "{region.value}" '
                f'in language "{language.value}": {e}'
            ) from e

        return parse_weather_report_html(html, region, language)
