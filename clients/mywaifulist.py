"""
MyWaifuList API client.

Official API: https://mywaifulist.docs.stoplight.io/
Provides methods to:
- Look up waifus, their galleries and the daily/random waifu
- Browse the currently airing season and its rankings
- Look up series and the waifus in them
- Read user profiles and user waifu lists
- Search waifus and series by name
"""

from typing import Any, Optional, Union
from urllib.parse import quote

from config.settings import Settings, get_settings
from clients.base import RequestExecutor
from domain.entities import ParameterError, Season, UserWaifuListType
from utils.logger import get_logger

logger = get_logger(__name__)


def _require(name: str, value: Any) -> Any:
    """Reject absent, blank or zero arguments before any request is made."""
    if value is None or value == 0 or (isinstance(value, str) and not value.strip()):
        raise ParameterError(f"Parameter '{name}' cannot be left blank")
    return value


def _segment(value: Any) -> str:
    """Encode a value as a single path segment."""
    return quote(str(value), safe="")


class MyWaifuListClient(RequestExecutor):
    """
    Client for the MyWaifuList API.

    Every method maps its arguments onto one endpoint and returns the decoded
    JSON response as-is. Errors from the request pipeline propagate unchanged.

    Example:
        >>> async with MyWaifuListClient("my-api-key") as client:
        ...     waifu = await client.get_waifu("rem")
    """

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        **overrides: Any
    ) -> "MyWaifuListClient":
        """
        Build a client from application settings.

        Args:
            settings: Settings instance (default: the cached environment settings)
            **overrides: Keyword arguments passed to the constructor as-is;
                ``api_key`` replaces the configured key

        Raises:
            ParameterError: If MYWAIFULIST_API_KEY is not configured
        """
        settings = settings or get_settings()
        missing = settings.validate_api_keys()
        if missing and "api_key" not in overrides:
            raise ParameterError(
                f"Parameter 'api_key' cannot be left blank: set {', '.join(missing)}"
            )

        options: dict[str, Any] = {
            "base_url": settings.mywaifulist_api_url,
            "timeout_ms": settings.mywaifulist_timeout_ms,
            "user_agent": settings.mywaifulist_user_agent,
        }
        options.update(overrides)
        api_key = options.pop("api_key", settings.mywaifulist_api_key)
        return cls(api_key, **options)

    # Waifu endpoints

    async def get_waifu(self, slug: str) -> Any:
        """
        Get a waifu by slug.

        Args:
            slug: Waifu slug, e.g. ``rem``
        """
        _require("slug", slug)
        logger.debug("Fetching waifu", slug=slug)
        return await self.get(f"/waifu/{_segment(slug)}")

    async def get_waifu_images(self, slug: str, page: Optional[int] = 1) -> Any:
        """
        Get a page of a waifu's gallery, 10 images per page.

        Args:
            slug: Waifu slug
            page: Page number (default: 1)
        """
        _require("slug", slug)
        return await self.get(
            f"/waifu/{_segment(slug)}/images",
            params={"page": page or 1}
        )

    async def get_waifu_by_page(self, letter: str, page: Optional[int] = 1) -> Any:
        """
        Get waifus whose name starts with a letter, sorted alphabetically.

        Args:
            letter: Starting letter (A-Z)
            page: Page number (default: 1)
        """
        _require("letter", letter)
        return await self.get("/waifu", params={"letter": letter, "page": page or 1})

    async def get_daily_waifu(self) -> Any:
        """Get the waifu of the day."""
        return await self.get("/meta/daily")

    async def get_random_waifu(self) -> Any:
        """Get a random waifu."""
        return await self.get("/meta/random")

    # Current season endpoints

    async def get_airing_shows(self) -> Any:
        """Get the shows airing this season."""
        return await self.get("/airing")

    async def get_current_best_waifus(self) -> Any:
        """Get the best waifus of the current season."""
        return await self.get("/airing/best")

    async def get_current_popular_waifus(self) -> Any:
        """Get the most popular waifus (raw vote count) of the current season."""
        return await self.get("/airing/popular")

    async def get_current_trash_waifus(self) -> Any:
        """Get the most disliked waifus of the current season."""
        return await self.get("/airing/trash")

    # Series endpoints

    async def get_series(self, slug: str) -> Any:
        """
        Get a series by slug.

        Args:
            slug: Series slug
        """
        _require("slug", slug)
        logger.debug("Fetching series", slug=slug)
        return await self.get(f"/series/{_segment(slug)}")

    async def get_series_by_page(self, letter: str) -> Any:
        """
        Get series whose name starts with a letter.

        Args:
            letter: Starting letter (A-Z)
        """
        _require("letter", letter)
        return await self.get("/series", params={"letter": letter})

    async def get_aired_shows_by_season(
        self,
        season: Union[Season, str],
        year: int
    ) -> Any:
        """
        Get the shows that premiered in a given season.

        Args:
            season: ``winter``, ``spring``, ``summer`` or ``fall``
            year: Year, e.g. 2019
        """
        _require("season", season)
        _require("year", year)
        return await self.get(f"/airing/{_segment(season)}/{_segment(year)}")

    async def get_series_waifus(self, slug: str, page: Optional[int] = 1) -> Any:
        """
        Get the waifus that appear in a series.

        Args:
            slug: Series slug
            page: Page number (default: 1)
        """
        _require("slug", slug)
        return await self.get(
            f"/series/{_segment(slug)}/waifus",
            params={"page": page or 1}
        )

    # User endpoints

    async def get_user_profile(self, user_id: Union[int, str]) -> Any:
        """
        Get a user's profile.

        Args:
            user_id: User ID
        """
        _require("user_id", user_id)
        return await self.get(f"/user/{_segment(user_id)}")

    async def get_user_waifus(
        self,
        user_id: Union[int, str],
        list_type: Union[UserWaifuListType, str],
        page: int
    ) -> Any:
        """
        Get the waifus a user created, liked or trashed.

        Args:
            user_id: User ID
            list_type: ``created``, ``like`` or ``trash``
            page: Page number (required)
        """
        _require("user_id", user_id)
        _require("list_type", list_type)
        _require("page", page)
        return await self.get(
            f"/user/{_segment(user_id)}/{_segment(list_type)}",
            params={"page": page}
        )

    # Search endpoints

    async def search(self, term: str) -> Any:
        """
        Search for a waifu or series.

        The service expects at least 4 characters.

        Args:
            term: Search term
        """
        _require("term", term)
        logger.debug("Searching", term=term)
        return await self.post_json("/search", term)

    async def search_beta(self, term: str) -> Any:
        """
        Search with the more aggressive name matching of the beta endpoint.

        Args:
            term: Search term
        """
        _require("term", term)
        logger.debug("Searching (beta)", term=term)
        return await self.post_json("/search/beta", term)
