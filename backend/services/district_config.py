"""Static district aliases that aggregate several region slugs into one trend view."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

# National Capital Region legislative districts and their member cities.
NCR_DISTRICT_CONFIG: Mapping[str, tuple[str, ...]] = MappingProxyType(
	{
		"ncr-first-district": ("manila",),
		"ncr-second-district": ("mandaluyong", "marikina", "pasig", "quezon-city", "san-juan"),
		"ncr-third-district": ("caloocan", "malabon", "navotas", "valenzuela"),
		"ncr-fourth-district": (
			"las-pinas",
			"makati",
			"muntinlupa",
			"paranaque",
			"pasay",
			"pateros",
			"taguig",
		),
	}
)


def resolve_region_slugs(slug: str, districts: Mapping[str, tuple[str, ...]] = NCR_DISTRICT_CONFIG) -> tuple[str, ...]:
	"""Return the member slugs of a district alias, or the slug itself for a single region."""
	return tuple(districts.get(slug, (slug,)))
