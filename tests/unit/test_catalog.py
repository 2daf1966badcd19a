"""Tests for the site and image type catalog."""

import logging

import pytest

from radarfetch.archive import catalog


class TestCatalog:
    @pytest.mark.parametrize("code", ["ATL", "atl", "NAT", "CASBI", "CASSF"])
    def test_known_sites(self, code: str) -> None:
        assert catalog.is_known_site(code)

    def test_unknown_site(self) -> None:
        assert not catalog.is_known_site("ZZZ")
        assert catalog.describe_site("zzz") == "ZZZ (unknown site)"

    def test_describe_site(self) -> None:
        assert catalog.describe_site("atl") == "ATL (Atlantic Canada)"

    def test_aggregates(self) -> None:
        aggregates = {code for code, site in catalog.SITES.items() if site.kind is catalog.SiteKind.AGGREGATE}

        assert aggregates == {"NAT", "PYR", "PNR", "ONT", "QUE", "ATL"}

    def test_image_types(self) -> None:
        assert catalog.is_known_image_type("PRECIPET_RAIN_WEATHEROFFICE")
        assert catalog.is_known_image_type("precipet_snow_weatheroffice")
        assert not catalog.is_known_image_type("RADAR_VELOCITY")

    def test_config_extends_catalog(self, isolated_config) -> None:
        isolated_config.write_text('[catalog]\nsites = ["xyz"]\nimage_types = ["radar_velocity"]\n')

        assert catalog.is_known_site("XYZ")
        assert catalog.known_sites()["XYZ"].kind is catalog.SiteKind.USER
        assert catalog.is_known_image_type("RADAR_VELOCITY")
        # Built-ins are untouched
        assert "XYZ" not in catalog.SITES

    def test_warn_if_unknown(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="radarfetch.archive.catalog"):
            catalog.warn_if_unknown("ZZZ", "PRECIPET_RAIN_WEATHEROFFICE")
            catalog.warn_if_unknown("ATL", "NOPE")
            catalog.warn_if_unknown("ATL", "PRECIPET_RAIN_WEATHEROFFICE")

        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 2
        assert "'ZZZ'" in messages[0]
        assert "'NOPE'" in messages[1]
