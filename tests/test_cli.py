"""CLI integration tests for review, apply, and undo."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from shotsort.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[str, str]: Environment mapping with HOME set.
    """
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    return env


def _proposed(root: Path, name: str, category: str, proposed: str) -> dict[str, Any]:
    return {
        "event": "proposed",
        "id": name,
        "original_path": str(root / f"{name}.png"),
        "original_name": f"{name}.png",
        "proposed_name": proposed,
        "proposed_category": category,
        "reasoning": f"{name} looks like {category}",
    }


def _collection(tmp_path: Path, events: list[dict[str, Any]] | None = None) -> tuple[Path, Path]:
    """Create a screenshot folder and a matching events file.

    Returns:
        tuple[Path, Path]: Collection root and events file.
    """
    root = tmp_path / "shots"
    root.mkdir()
    if events is None:
        events = [
            _proposed(root, "a", "work", "standup"),
            _proposed(root, "b", "work", "roadmap"),
            _proposed(root, "c", "work", "retro"),
        ]
    for event in events:
        if event["event"] == "proposed":
            Path(event["original_path"]).write_text(event["id"], encoding="utf-8")
    events_path = tmp_path / "events.jsonl"
    events_path.write_text("\n".join(json.dumps(event) for event in events) + "\n", encoding="utf-8")
    return root, events_path


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "shotsort sorts screenshots" in result.output
    for command in ("review", "apply", "undo", "config"):
        assert command in result.output


def test_review_json_reports_tree_and_conflicts(tmp_path: Path) -> None:
    root, events_path = _collection(
        tmp_path,
        [
            _proposed(tmp_path / "shots", "a", "work", "report"),
            _proposed(tmp_path / "shots", "b", "work", "report"),
            _proposed(tmp_path / "shots", "c", "work", "deck"),
            _proposed(tmp_path / "shots", "d", "misc", "meme"),
        ],
    )
    runner = CliRunner()

    result = runner.invoke(
        cli, ["review", str(root), str(events_path), "--json"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [node["name"] for node in payload["tree"]] == ["Other", "Work"]
    assert payload["counts"]["proposals"] == 4
    assert payload["counts"]["conflicts"] == 2
    conflict_ids = [conflict["id"] for conflict in payload["conflicts"]]
    assert conflict_ids == ["a", "b"]
    assert payload["conflicts"][0]["reasons"] == ["Duplicate destination"]
    destinations = {proposal["id"]: proposal["destination"] for proposal in payload["proposals"]}
    assert destinations["d"] == str(root / "Other" / "meme.png")


def test_review_no_optimize_keeps_small_categories(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path, [_proposed(tmp_path / "shots", "a", "misc", "meme")])
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["review", str(root), str(events_path), "--json", "--no-optimize"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [node["name"] for node in payload["tree"]] == ["Misc"]


def test_apply_then_undo_round_trip(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["apply", str(root), str(events_path)], env=env)

    assert result.exit_code == 0, result.output
    assert "Apply summary" in result.output
    for name in ("standup", "roadmap", "retro"):
        assert (root / "Work" / f"{name}.png").exists()
    assert not (root / "a.png").exists()
    ledger = root / ".shotsort" / "last_batch.json"
    assert ledger.exists()
    assert len(json.loads(ledger.read_text(encoding="utf-8"))["records"]) == 3

    result = runner.invoke(cli, ["undo", str(root)], env=env)

    assert result.exit_code == 0, result.output
    assert "Undo summary" in result.output
    for name in ("a", "b", "c"):
        assert (root / f"{name}.png").read_text(encoding="utf-8") == name
    assert not ledger.exists()


def test_apply_aborts_on_conflicts(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    (root / "Work").mkdir()
    (root / "Work" / "standup.png").write_text("existing", encoding="utf-8")
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["apply", str(root), str(events_path), "--json"], env=env)

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "conflicts"
    assert payload["error"]["details"][0]["id"] == "a"
    assert payload["error"]["details"][0]["reasons"] == ["File already exists"]
    assert (root / "a.png").exists()
    assert not (root / ".shotsort" / "last_batch.json").exists()


def test_apply_resolutions_unblock_the_batch(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    (root / "Work").mkdir()
    (root / "Work" / "standup.png").write_text("existing", encoding="utf-8")
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli,
        ["apply", str(root), str(events_path), "--rename", "a=daily", "--skip", "c", "--json"],
        env=env,
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["counts"]["moved"] == 2
    assert (root / "Work" / "daily.png").read_text(encoding="utf-8") == "a"
    assert (root / "Work" / "standup.png").read_text(encoding="utf-8") == "existing"
    assert (root / "c.png").exists()


def test_apply_overwrite_replaces_existing_file(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    (root / "Work").mkdir()
    (root / "Work" / "standup.png").write_text("existing", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["apply", str(root), str(events_path), "--overwrite", "a"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert (root / "Work" / "standup.png").read_text(encoding="utf-8") == "a"


def test_apply_dry_run_moves_nothing(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["apply", str(root), str(events_path), "--dry-run", "--json"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["counts"]["planned"] == 3
    assert payload["moves"][0]["destination"] == str(root / "Work" / "standup.png")
    assert (root / "a.png").exists()


def test_apply_rejects_malformed_rename(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["apply", str(root), str(events_path), "--rename", "no-separator"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert (root / "a.png").exists()


def test_apply_reports_invalid_events(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    events_path.write_text('{"event": "proposed"}\n', encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        cli, ["apply", str(root), str(events_path), "--json"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "invalid_input"


def test_undo_without_ledger_fails(tmp_path: Path) -> None:
    root = tmp_path / "shots"
    root.mkdir()
    runner = CliRunner()

    result = runner.invoke(cli, ["undo", str(root)], env=_env_with_home(tmp_path))

    assert result.exit_code != 0
    assert "No move batch recorded" in result.output


def test_json_conflicts_with_quiet(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["review", str(root), str(events_path), "--json", "--quiet"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "cli_error"


def test_unknown_logging_level_reports_config_error(tmp_path: Path) -> None:
    root, events_path = _collection(tmp_path)
    env = _env_with_home(tmp_path)
    env["SHOTSORT__LOGGING__LEVEL"] = "LOUD"
    runner = CliRunner()

    result = runner.invoke(cli, ["review", str(root), str(events_path), "--json"], env=env)

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "config_error"
