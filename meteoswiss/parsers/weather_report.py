"""
Parser for MeteoSwiss weather report text products (XHTML).
"""

from typing import List, Union

from bs4 import BeautifulSoup, Tag

from ..models import ForecastDay, Language, Region, WeatherReport


def _text(element: Union[Tag, None]) -> str:
    return element.get_text().strip() if element is not None else ""


def parse_forecast(soup: BeautifulSoup) -> List[ForecastDay]:
    """
    Extract the per-day forecast.

    Every ``h4`` names a day; the next element holds the description and the
    one after it, when present, the temperature.
    """
    forecast: List[ForecastDay] = []
    for heading in soup.find_all("h4"):
        description = heading.find_next_sibling()
        temperature = description.find_next_sibling() if description is not None else None

        forecast.append(
            ForecastDay(
                day=_text(heading),
                description=_text(description),
                temperature=_text(temperature) or None,
            )
        )
    return forecast


def parse_weather_report_html(
    html: str, region: Union[Region, str], language: Union[Language, str]
) -> WeatherReport:
    """
    Parse a weather report text product.

    Args:
        html: XHTML document of the report
        region: Region the report covers
        language: Language of the report

    Returns:
        WeatherReport with title, update time, full text and forecast days
    """
    soup = BeautifulSoup(html, "lxml")

    return WeatherReport(
        region=Region(region),
        language=Language(language),
        title=_text(soup.find("h3")),
        updated_at=_text(soup.find("p")),
        content=_text(soup.select_one(".textFCK")),
        forecast=parse_forecast(soup),
    )
