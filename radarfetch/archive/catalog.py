"""Known site and image type codes for the radar archive.

The archive does not publish its code lists, so these tables only drive
warnings and ``--list-sites`` output. Unknown codes are still requested.
Users can register more codes through the ``[catalog]`` config section.
"""

from dataclasses import dataclass
from enum import Enum

from radarfetch.utils import config, log

LOGGER = log.get_logger(__name__)


class SiteKind(Enum):
    RADAR = "radar"
    AGGREGATE = "aggregate"
    USER = "user"


@dataclass(frozen=True)
class Site:
    code: str
    name: str
    kind: SiteKind


SITES: dict[str, Site] = {
    site.code: site
    for site in (
        Site("CASBI", "S-band radar", SiteKind.RADAR),
        Site("CASCM", "S-band radar", SiteKind.RADAR),
        Site("CASFT", "S-band radar", SiteKind.RADAR),
        Site("CASGO", "S-band radar", SiteKind.RADAR),
        Site("CASKR", "S-band radar", SiteKind.RADAR),
        Site("CASLC", "S-band radar", SiteKind.RADAR),
        Site("CASLA", "S-band radar", SiteKind.RADAR),
        Site("CASBV", "S-band radar", SiteKind.RADAR),
        Site("CASVD", "S-band radar", SiteKind.RADAR),
        Site("CASSF", "S-band radar", SiteKind.RADAR),
        Site("NAT", "National composite", SiteKind.AGGREGATE),
        Site("PYR", "Pacific region", SiteKind.AGGREGATE),
        Site("PNR", "Prairie region", SiteKind.AGGREGATE),
        Site("ONT", "Ontario region", SiteKind.AGGREGATE),
        Site("QUE", "Quebec region", SiteKind.AGGREGATE),
        Site("ATL", "Atlantic Canada", SiteKind.AGGREGATE),
    )
}

IMAGE_TYPES: dict[str, str] = {
    "PRECIPET_RAIN_WEATHEROFFICE": "Precipitation, rain colour scale",
    "PRECIPET_SNOW_WEATHEROFFICE": "Precipitation, snow colour scale",
}


def known_sites() -> dict[str, Site]:
    """Built-in sites merged with any configured extras."""
    merged = dict(SITES)
    for code in config.get_extra_sites():
        merged.setdefault(code, Site(code, "User defined", SiteKind.USER))
    return merged


def known_image_types() -> dict[str, str]:
    """Built-in image types merged with any configured extras."""
    merged = dict(IMAGE_TYPES)
    for code in config.get_extra_image_types():
        merged.setdefault(code, "User defined")
    return merged


def is_known_site(code: str) -> bool:
    return code.upper() in known_sites()


def is_known_image_type(code: str) -> bool:
    return code.upper() in known_image_types()


def describe_site(code: str) -> str:
    site = known_sites().get(code.upper())
    if site is None:
        return f"{code.upper()} (unknown site)"
    return f"{site.code} ({site.name})"


def warn_if_unknown(site: str, image_type: str) -> None:
    """Log a warning for codes the catalog does not list."""
    if not is_known_site(site):
        LOGGER.warning(
            "Site %r is not in the catalog; the archive may return no images for it", site
        )
    if not is_known_image_type(image_type):
        LOGGER.warning(
            "Image type %r is not in the catalog; the archive may return no images for it",
            image_type,
        )
