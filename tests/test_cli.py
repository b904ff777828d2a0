"""Tests for CLI commands - lists, items, sync, conflicts, menu."""

import json
import re
from pathlib import Path

import pytest
from click.testing import CliRunner

from tribelist import __version__
from tribelist.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(runner: CliRunner, tmp_path: Path):
    """Run the CLI against a database and import directory in tmp_path."""
    import_dir = tmp_path / "imports"
    import_dir.mkdir()

    def run(*args: str, input: str | None = None):
        return runner.invoke(
            cli,
            ["--db-path", str(tmp_path / "tribelist.db"), "--log-level", "ERROR", *args],
            input=input,
            env={"TRIBELIST_IMPORT_DIR": str(import_dir), "TRIBELIST_TIMEOUT_SECONDS": None},
        )

    run.import_dir = import_dir
    return run


def created_id(output: str) -> str:
    match = re.search(r"(?:Created list|Added item) (\S+) \(", output)
    assert match, output
    return match.group(1)


@pytest.fixture
def list_id(invoke) -> str:
    result = invoke("lists", "create", "Dinners", "--cooldown-days", "7")
    assert result.exit_code == 0
    return created_id(result.output)


class TestBasics:
    """Tests for the root group."""

    def test_version(self, runner: CliRunner) -> None:
        """--version prints the package version."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        """--help shows every command group."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("lists", "items", "sync", "conflicts", "menu"):
            assert name in result.output

    def test_invalid_env_setting(self, runner: CliRunner, tmp_path: Path) -> None:
        """Bad environment settings are reported and exit 1."""
        result = runner.invoke(
            cli,
            ["--db-path", str(tmp_path / "x.db"), "lists", "ls"],
            env={"TRIBELIST_APPLY_MAX_ATTEMPTS": "0"},
        )
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestListCommands:
    """Tests for 'tribelist lists'."""

    def test_create_and_show(self, invoke, list_id: str) -> None:
        """A created list can be shown."""
        result = invoke("lists", "show", list_id)
        assert result.exit_code == 0
        assert "Dinners" in result.output
        assert "Cooldown:    7 days" in result.output
        assert "none (source: none)" in result.output
        assert "configure_sync" in result.output

    def test_ls(self, invoke, list_id: str) -> None:
        """ls shows created lists."""
        result = invoke("lists", "ls", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [lst["id"] for lst in data] == [list_id]
        assert data[0]["sync"]["status"] == "none"

    def test_ls_empty(self, invoke) -> None:
        """ls says so when there are no lists."""
        result = invoke("lists", "ls")
        assert result.exit_code == 0
        assert "No lists." in result.output

    def test_create_invalid(self, invoke) -> None:
        """Invalid lists are rejected with exit 1."""
        result = invoke("lists", "create", "Bad", "--default-weight", "0")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_delete(self, invoke, list_id: str) -> None:
        """Deleted lists can no longer be shown."""
        assert invoke("lists", "delete", list_id, "--yes").exit_code == 0
        result = invoke("lists", "show", list_id)
        assert result.exit_code == 1
        assert "not found" in result.output.lower()

    def test_delete_cancelled(self, invoke, list_id: str) -> None:
        """Declining the prompt keeps the list."""
        result = invoke("lists", "delete", list_id, input="n\n")
        assert "Cancelled." in result.output
        assert invoke("lists", "show", list_id).exit_code == 0


class TestItemCommands:
    """Tests for 'tribelist items'."""

    def test_add_and_ls(self, invoke, list_id: str) -> None:
        """Added items show up in ls."""
        result = invoke(
            "items", "add", list_id, "Tacos", "--weight", "2",
            "--lat", "48.85", "--lng", "2.35", "--address", "Paris",
        )
        assert result.exit_code == 0
        item_id = created_id(result.output)

        data = json.loads(invoke("items", "ls", list_id, "--json").output)
        assert [i["id"] for i in data] == [item_id]
        assert data[0]["weight"] == 2.0
        assert data[0]["address"] == "Paris"

    def test_add_seasonal(self, invoke, list_id: str) -> None:
        """Start and end dates make an item seasonal."""
        result = invoke(
            "items", "add", list_id, "Gazpacho",
            "--start-date", "2024-06-01", "--end-date", "2024-08-31",
        )
        assert result.exit_code == 0
        (item,) = json.loads(invoke("items", "ls", list_id, "--json").output)
        assert item["seasonal"] is True
        assert item["start_date"].startswith("2024-06-01")
        assert item["end_date"] == "2024-08-31T23:59:59.999999+00:00"

    def test_end_date_with_time_is_kept(self, invoke, list_id: str) -> None:
        """An explicit end time is used as given."""
        invoke(
            "items", "add", list_id, "Gazpacho",
            "--start-date", "2024-06-01", "--end-date", "2024-08-31T18:00:00",
        )
        (item,) = json.loads(invoke("items", "ls", list_id, "--json").output)
        assert item["end_date"] == "2024-08-31T18:00:00+00:00"

    def test_add_invalid_location(self, invoke, list_id: str) -> None:
        """A partial location is rejected."""
        result = invoke("items", "add", list_id, "Tacos", "--lat", "48.85")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_use_counts(self, invoke, list_id: str) -> None:
        """use records consumption."""
        item_id = created_id(invoke("items", "add", list_id, "Tacos").output)
        invoke("items", "use", item_id)
        result = invoke("items", "use", item_id)
        assert result.exit_code == 0
        assert "Recorded use of Tacos (2 total)" in result.output

    def test_remove(self, invoke, list_id: str) -> None:
        """Removed items disappear."""
        item_id = created_id(invoke("items", "add", list_id, "Tacos").output)
        assert invoke("items", "remove", item_id).exit_code == 0
        assert "No items." in invoke("items", "ls", list_id).output
        assert invoke("items", "remove", item_id).exit_code == 1


class TestSyncCommands:
    """Tests for 'tribelist sync' and 'tribelist conflicts'."""

    def test_transitions(self, invoke) -> None:
        """transitions prints the table."""
        result = invoke("sync", "transitions", "--from", "conflict")
        assert result.exit_code == 0
        assert "resolve_conflict" in result.output
        assert "configure_sync" not in result.output

    def test_apply_and_disable(self, invoke, list_id: str) -> None:
        """Sync actions move the list between states."""
        result = invoke(
            "sync", "apply", list_id, "configure_sync",
            "--source", "imported", "--external-id", "dinners",
        )
        assert result.exit_code == 0
        assert "is now pending" in result.output
        result = invoke("sync", "apply", list_id, "disable_sync")
        assert "is now none" in result.output

    def test_invalid_transition(self, invoke, list_id: str) -> None:
        """Actions not allowed from the current state exit 1."""
        result = invoke("sync", "apply", list_id, "sync_complete")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_action(self, invoke, list_id: str) -> None:
        """Unknown action names are usage errors."""
        result = invoke("sync", "apply", list_id, "teleport")
        assert result.exit_code == 2

    def test_run_without_source(self, invoke, list_id: str) -> None:
        """Lists without a source can't be synced."""
        result = invoke("sync", "run", list_id)
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_full_conflict_cycle(self, invoke, list_id: str) -> None:
        """Sync finds divergence, conflicts get resolved, push brings the list back in sync."""
        invoke("items", "add", list_id, "Tacos", "--external-id", "e1")
        invoke(
            "sync", "apply", list_id, "configure_sync",
            "--source", "imported", "--external-id", "dinners",
        )
        (invoke.import_dir / "dinners.json").write_text(
            json.dumps({"items": [{"external_id": "e1", "name": "Tacos al pastor"}]})
        )

        result = invoke("sync", "run", list_id)
        assert result.exit_code == 0
        assert "0 added, 0 removed, 1 modified" in result.output
        assert "list is now conflict" in result.output

        conflicts = json.loads(invoke("conflicts", "ls", list_id, "--open", "--json").output)
        assert [c["type"] for c in conflicts] == ["modified"]

        blocked = invoke("sync", "run", list_id)
        assert blocked.exit_code == 1

        result = invoke("conflicts", "resolve", conflicts[0]["id"], "kept local")
        assert result.exit_code == 0
        assert "0 open conflicts left; list is pending" in result.output

        again = invoke("conflicts", "resolve", conflicts[0]["id"], "kept local")
        assert again.exit_code == 1
        assert "already resolved" in again.output.lower()

        result = invoke("sync", "push", list_id)
        assert result.exit_code == 0
        assert "status synced" in result.output
        assert "is in sync (synced)" in invoke("sync", "run", list_id).output

    def test_conflicts_ls_empty(self, invoke, list_id: str) -> None:
        """ls says so when there are no conflicts."""
        assert "No conflicts." in invoke("conflicts", "ls", list_id).output


class TestMenuCommand:
    """Tests for 'tribelist menu'."""

    def test_draw_and_cooldown(self, invoke, list_id: str) -> None:
        """Drawn items sit out of the next menu."""
        taco = created_id(invoke("items", "add", list_id, "Tacos").output)
        ramen = created_id(invoke("items", "add", list_id, "Ramen").output)

        result = invoke("menu", list_id, "--count", "2", "--seed", "1")
        assert result.exit_code == 0
        assert taco in result.output
        assert ramen in result.output
        assert result.output.startswith("1. ")

        result = invoke("menu", list_id)
        assert result.exit_code == 0
        assert "No eligible items." in result.output

    def test_partial_menu(self, invoke, list_id: str) -> None:
        """Fewer eligible items than requested is reported, not an error."""
        invoke("items", "add", list_id, "Tacos")
        result = invoke("menu", list_id, "--count", "3")
        assert result.exit_code == 0
        assert "Only 1 of 3 requested items were available." in result.output

    def test_exclude_and_json(self, invoke, list_id: str) -> None:
        """Excluded items are never drawn."""
        taco = created_id(invoke("items", "add", list_id, "Tacos").output)
        ramen = created_id(invoke("items", "add", list_id, "Ramen").output)
        result = invoke("menu", list_id, "-n", "2", "-x", taco, "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"item_ids": [ramen], "requested": 2, "satisfied": 1}

    def test_invalid_count(self, invoke, list_id: str) -> None:
        """A non-positive count exits 1."""
        result = invoke("menu", list_id, "--count", "0")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_list(self, invoke) -> None:
        """Unknown lists exit 1."""
        result = invoke("menu", "nope")
        assert result.exit_code == 1
