"""End-to-end tests of the radarfetch command line against an in-memory archive."""

from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from radarfetch import cli
from radarfetch.archive import fetch_loop
from radarfetch.archive.remote.base import ResourceNotFoundError
from tests.utils.mocks import FakeArchiveStore

pytestmark = pytest.mark.integration

BASE_ARGS = [
    "--site",
    "ATL",
    "--image-type",
    "PRECIPET_RAIN_WEATHEROFFICE",
    "--start-year",
    "2021",
    "--start-month",
    "2",
    "--start-day",
    "1",
    "--end-year",
    "2021",
    "--end-month",
    "2",
    "--end-day",
    "1",
]


@pytest.fixture
def archive():
    """Patch the HTTP store used by the fetch loop with a FakeArchiveStore."""
    stores: list[FakeArchiveStore] = []
    errors: dict = {}

    def factory(**_kwargs) -> FakeArchiveStore:
        store = FakeArchiveStore(errors=errors)
        stores.append(store)
        return store

    with patch.object(fetch_loop, "HttpArchiveStore", side_effect=factory):
        yield stores, errors


class TestCommandLine:
    def test_full_day_by_default(self, archive, temp_dir: Path) -> None:
        stores, _ = archive

        code = cli.main([*BASE_ARGS, "--directory", str(temp_dir)])

        assert code == cli.EXIT_OK
        assert len(stores[0].calls) == 24
        assert len(list(temp_dir.iterdir())) == 24

    def test_hour_window(self, archive, temp_dir: Path) -> None:
        stores, _ = archive

        code = cli.main(
            [*BASE_ARGS, "--directory", str(temp_dir), "--start-hour", "0", "--end-hour", "2", "--concurrency", "1"]
        )

        assert code == cli.EXIT_OK
        assert stores[0].requested_hours == [datetime(2021, 2, 1, h, tzinfo=UTC) for h in range(3)]
        assert sorted(p.name for p in temp_dir.iterdir()) == [
            "ATL_PRECIPET_RAIN_WEATHEROFFICE_2021-02-01T00-00.gif",
            "ATL_PRECIPET_RAIN_WEATHEROFFICE_2021-02-01T01-00.gif",
            "ATL_PRECIPET_RAIN_WEATHEROFFICE_2021-02-01T02-00.gif",
        ]

    def test_rerun_fetches_nothing(self, archive, temp_dir: Path) -> None:
        stores, _ = archive
        args = [*BASE_ARGS, "--directory", str(temp_dir), "--end-hour", "3"]

        assert cli.main(args) == cli.EXIT_OK
        assert cli.main(args) == cli.EXIT_OK

        assert len(stores) == 1
        assert len(stores[0].calls) == 4

    def test_partial_failure_exit_codes(self, archive, temp_dir: Path) -> None:
        _, errors = archive
        errors[datetime(2021, 2, 1, 1, tzinfo=UTC)] = ResourceNotFoundError("missing")
        args = [*BASE_ARGS, "--directory", str(temp_dir), "--end-hour", "2"]

        assert cli.main(args) == cli.EXIT_OK
        assert len(list(temp_dir.iterdir())) == 2
        assert cli.main([*args, "--fail-on-missing"]) == cli.EXIT_FAILURE

    def test_empty_range(self, archive, temp_dir: Path) -> None:
        stores, _ = archive
        args = [*BASE_ARGS, "--directory", str(temp_dir)]
        args[args.index("--start-day") + 1] = "2"

        assert cli.main(args) == cli.EXIT_OK
        assert stores == []

    def test_invalid_date_fails_before_network(self, archive, temp_dir: Path) -> None:
        stores, _ = archive
        args = [*BASE_ARGS, "--directory", str(temp_dir / "out")]
        args[args.index("--end-day") + 1] = "30"

        assert cli.main(args) == cli.EXIT_FAILURE
        assert stores == []
        assert not (temp_dir / "out").exists()

    def test_unusable_directory_fails_before_network(self, archive, temp_dir: Path) -> None:
        stores, _ = archive
        blocker = temp_dir / "file"
        blocker.write_text("x")

        assert cli.main([*BASE_ARGS, "--directory", str(blocker)]) == cli.EXIT_FAILURE
        assert stores == []

    def test_missing_arguments(self, archive, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--site", "ATL"])

        assert exc_info.value.code == 2
        assert "--image-type" in capsys.readouterr().err

    def test_list_sites(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main(["--list-sites"]) == cli.EXIT_OK

        out = capsys.readouterr().out
        assert "ATL" in out
        assert "PRECIPET_RAIN_WEATHEROFFICE" in out

    def test_config_file_supplies_network_defaults(self, isolated_config: Path, temp_dir: Path) -> None:
        isolated_config.write_text('[archive]\nconcurrency = 2\ntimeout = 11\nextension = "png"\n')
        args = cli.build_parser().parse_args([*BASE_ARGS, "--directory", str(temp_dir), "--timeout", "3"])

        fetch_config = cli.config_from_args(args)

        assert fetch_config.concurrency == 2
        assert fetch_config.timeout == 3
        assert fetch_config.extension == "png"
        assert fetch_config.start == datetime(2021, 2, 1, 0, tzinfo=UTC)
        assert fetch_config.end == datetime(2021, 2, 1, 23, tzinfo=UTC)

    @pytest.mark.parametrize("template", ["https://x.test/{time.nope}", "https://x.test/{nope}"])
    def test_broken_url_template_fails_before_network(
        self, archive, temp_dir: Path, template: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        stores, _ = archive
        out = temp_dir / "out"

        code = cli.main([*BASE_ARGS, "--directory", str(out), "--url-template", template])

        assert code == cli.EXIT_FAILURE
        assert stores == []
        assert not out.exists()
        assert "Invalid archive URL template" in caplog.text

    def test_invalid_config_file_is_reported(
        self, archive, isolated_config: Path, temp_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        stores, _ = archive
        isolated_config.write_text('[archive]\nconcurrency = "four"\n')
        out = temp_dir / "out"

        code = cli.main([*BASE_ARGS, "--directory", str(out)])

        assert code == cli.EXIT_FAILURE
        assert stores == []
        assert not out.exists()
        assert "'archive.concurrency' must be int" in caplog.text

    def test_invalid_config_file_with_list_sites(self, isolated_config: Path) -> None:
        isolated_config.write_text("[catalog\n")

        assert cli.main(["--list-sites"]) == cli.EXIT_FAILURE
