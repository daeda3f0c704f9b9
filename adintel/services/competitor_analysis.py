"""Competitor analysis - normalizes the research model's JSON into a stable payload."""

from __future__ import annotations

import logging
import math
import re
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from adintel.core.errors import ServiceError
from adintel.integrations.competitor_research import CompetitorResearchClient

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 6
MAX_TREND_POINTS = 12
MAX_REGIONS = 10
DEFAULT_GEO = "us"
DEFAULT_DATE_RANGE = "last-12-months"
DEFAULT_WIDGETS = "interest_over_time,geo_map"

_STATUS_NOTE = re.compile(r"\((\d{3}[^)]*)\)")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchInsight(_CamelModel):
    title: str
    snippet: str
    url: str
    source: str | None = None
    published_at: str | None = Field(default=None, alias="publishedAt")


class TrendPoint(BaseModel):
    label: str
    value: float


class RegionInterest(BaseModel):
    region: str
    value: float


class TrendsRequest(_CamelModel):
    query: str
    geo: str = DEFAULT_GEO
    date_range: str = Field(default=DEFAULT_DATE_RANGE, alias="dateRange")
    widgets: str = DEFAULT_WIDGETS


class GoogleTrendsSummary(_CamelModel):
    success: bool
    request: TrendsRequest
    interest_over_time: list[TrendPoint] = Field(default_factory=list, alias="interestOverTime")
    top_regions: list[RegionInterest] = Field(default_factory=list, alias="topRegions")
    raw_excerpt: str | None = Field(default=None, alias="rawExcerpt")
    error: str | None = None


class CompetitorAnalysisPayload(_CamelModel):
    query: str
    search_insights: list[SearchInsight] = Field(alias="searchInsights")
    search_raw: Any | None = Field(default=None, alias="searchRaw")
    google_trends: GoogleTrendsSummary = Field(alias="googleTrends")


class CompetitorAnalysisError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, "competitor_analysis_failed")


def _string(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(max(value, low), high)


def infer_source(url: str) -> str | None:
    hostname = urlparse(url).hostname
    return hostname.removeprefix("www.") if hostname else None


def normalize_insights(value: Any) -> list[SearchInsight]:
    if not isinstance(value, list):
        return []
    seen: set[tuple[str, str]] = set()
    insights: list[SearchInsight] = []
    for raw in value:
        if not isinstance(raw, dict):
            continue
        url = _string(raw.get("url"))
        if not url:
            continue
        title = _string(raw.get("title")) or _string(raw.get("snippet")) or "Untitled insight"
        if (title, url) in seen:
            continue
        seen.add((title, url))
        insights.append(
            SearchInsight(
                title=title,
                snippet=_string(raw.get("snippet")) or "",
                url=url,
                source=_string(raw.get("source")) or infer_source(url),
                published_at=_string(raw.get("publishedAt")),
            )
        )
        if len(insights) == MAX_INSIGHTS:
            break
    return insights


def normalize_trend_points(value: Any) -> list[TrendPoint]:
    if not isinstance(value, list):
        return []
    points: list[TrendPoint] = []
    for raw in value:
        if not isinstance(raw, dict):
            continue
        label = (
            _string(raw.get("label"))
            or _string(raw.get("time"))
            or _string(raw.get("formattedTime"))
        )
        number = _number(raw.get("value"))
        if label and number is not None:
            points.append(TrendPoint(label=label, value=_clamp(number)))
    return points[-MAX_TREND_POINTS:]


def normalize_regions(value: Any) -> list[RegionInterest]:
    if not isinstance(value, list):
        return []
    regions: list[RegionInterest] = []
    for raw in value:
        if not isinstance(raw, dict):
            continue
        region = next(
            (
                name
                for key in ("region", "geoName", "location", "country")
                if (name := _string(raw.get(key)))
            ),
            None,
        )
        number = _number(raw.get("value"))
        if region and number is not None:
            regions.append(RegionInterest(region=region, value=_clamp(number)))
    return regions[:MAX_REGIONS]


def empty_trends(query: str, error: str | None = None) -> GoogleTrendsSummary:
    return GoogleTrendsSummary(
        success=False,
        request=TrendsRequest(query=query),
        error=error or "Trend data unavailable.",
    )


def normalize_trends(value: Any, query: str) -> GoogleTrendsSummary:
    if not isinstance(value, dict):
        return empty_trends(query, "Research service did not return trend data.")
    raw_request = value.get("request") if isinstance(value.get("request"), dict) else {}
    request = TrendsRequest(
        query=_string(raw_request.get("query")) or query,
        geo=_string(raw_request.get("geo")) or DEFAULT_GEO,
        date_range=_string(raw_request.get("dateRange")) or DEFAULT_DATE_RANGE,
        widgets=_string(raw_request.get("widgets")) or DEFAULT_WIDGETS,
    )
    points = normalize_trend_points(value.get("interestOverTime"))
    regions = normalize_regions(value.get("topRegions"))
    has_data = bool(points or regions)
    success = value.get("success")
    return GoogleTrendsSummary(
        success=bool(success) if success is not None else has_data,
        request=request,
        interest_over_time=points,
        top_regions=regions,
        raw_excerpt=_string(value.get("rawExcerpt")),
        error=_string(value.get("error")),
    )


def normalize_payload(query: str, payload: dict[str, Any]) -> CompetitorAnalysisPayload:
    echoed = payload.get("query")
    return CompetitorAnalysisPayload(
        query=echoed if isinstance(echoed, str) and echoed else query,
        search_insights=normalize_insights(payload.get("searchInsights")),
        search_raw=payload.get("searchRaw", payload),
        google_trends=normalize_trends(payload.get("googleTrends"), query),
    )


def friendly_error(error: Exception) -> str:
    match = _STATUS_NOTE.search(str(error))
    note = f" ({match.group(1).strip()})" if match else ""
    return f"Research service request failed{note}. Please try again later."


class CompetitorAnalysisService:
    def __init__(self, research_client: CompetitorResearchClient) -> None:
        self._research_client = research_client

    async def analyze(self, query: str) -> CompetitorAnalysisPayload:
        """Research ``query`` and return the normalized payload.

        Raises:
            CompetitorAnalysisError: With a user-facing message when research fails.
        """
        query = query.strip()
        if not query:
            raise CompetitorAnalysisError("Competitor analysis query is required.")
        try:
            raw = await self._research_client.research(query)
        except ServiceError as e:
            logger.error("Competitor research failed: %s", e)
            raise CompetitorAnalysisError(friendly_error(e)) from e
        return normalize_payload(query, raw)
