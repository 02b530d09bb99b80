"""CLI integration tests for imgstash."""

from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from imgstash.cli import cli
from imgstash.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    """Return environment variables pointing HOME to a temp directory."""
    env = {key: value for key, value in os.environ.items() if not key.startswith("IMGSTASH__")}
    env["HOME"] = str(tmp_path / "home")
    return env


def _store_dir(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".imgstash" / "store"


def _image(tmp_path: Path, name: str, content: bytes) -> tuple[Path, str]:
    inbox = tmp_path / "inbox"
    inbox.mkdir(exist_ok=True)
    path = inbox / name
    path.write_bytes(content)
    return path, hashlib.sha256(content).hexdigest()


def _add(runner: CliRunner, env: dict[str, Any], path: Path, *tags: str) -> dict[str, Any]:
    args = ["add", str(path), "--no-interactive", "--json"]
    for name in tags:
        args.extend(["-t", name])
    result = runner.invoke(cli, args, env=env)
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "content-addressed" in result.output
    for command in ("add", "edit", "delete", "verify", "check", "repair", "tag", "pick"):
        assert command in result.output


def test_cli_add_edit_delete_lifecycle(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, h1 = _image(tmp_path, "photo.jpg", b"sunset pixels")

    assert _add(runner, env, photo, "sunset", "beach") == {"added": [h1]}
    assert _add(runner, env, photo, "sunset") == {"added": []}
    assert (_store_dir(tmp_path) / f"{h1}.jpg").read_bytes() == b"sunset pixels"

    result = runner.invoke(
        cli, ["edit", h1, "-t", "mountains", "-s", "camera", "--no-interactive"], env=env
    )
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli, ["show", str(photo), "--json"], env=env)
    assert result.exit_code == 0, result.output
    entry = json.loads(result.output)[h1]
    assert entry["tags"] == ["sunset", "beach", "mountains"]
    assert entry["source"] == "camera"
    assert entry["extension"] == "jpg"

    result = runner.invoke(cli, ["delete", h1, "--yes"], env=env)
    assert result.exit_code == 0, result.output
    assert not (_store_dir(tmp_path) / f"{h1}.jpg").exists()

    result = runner.invoke(cli, ["show", "--json"], env=env)
    assert json.loads(result.output) == {}


def test_cli_add_defaults_to_current_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    _, h1 = _image(tmp_path, "a.png", b"a")
    _image(tmp_path, "notes.txt", b"not an image")
    monkeypatch.chdir(tmp_path / "inbox")

    result = runner.invoke(cli, ["add", "-t", "batch", "--no-interactive", "--json"], env=env)

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"added": [h1]}


def test_cli_add_rejects_invalid_tag(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, _ = _image(tmp_path, "photo.png", b"x")

    result = runner.invoke(cli, ["add", str(photo), "-t", "", "--no-interactive"], env=env)

    assert result.exit_code != 0
    assert "Invalid tag" in result.output


def test_cli_delete_unknown_hash_fails_without_changes(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, h1 = _image(tmp_path, "photo.png", b"keep me")
    _add(runner, env, photo, "keep")

    result = runner.invoke(cli, ["delete", h1, "0" * 64, "--yes"], env=env)

    assert result.exit_code == 1
    assert "not listed" in result.output
    assert (_store_dir(tmp_path) / f"{h1}.png").exists()


def test_cli_delete_asks_for_confirmation(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, h1 = _image(tmp_path, "photo.png", b"maybe")
    _add(runner, env, photo, "maybe")

    result = runner.invoke(cli, ["delete", h1], env=env, input="n")

    assert result.exit_code == 0, result.output
    assert (_store_dir(tmp_path) / f"{h1}.png").exists()


def test_cli_verify_check_and_repair(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, h1 = _image(tmp_path, "photo.png", b"verify me")
    _add(runner, env, photo, "v")

    result = runner.invoke(cli, ["verify", "--json", "--hashes"], env=env)
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"valid": True, "findings": []}

    stored = _store_dir(tmp_path) / f"{h1}.png"
    stored.rename(stored.with_name("wrong.png"))

    result = runner.invoke(cli, ["check"], env=env)
    assert result.exit_code == 1

    result = runner.invoke(cli, ["verify", "--json"], env=env)
    payload = json.loads(result.output)
    assert payload["valid"] is False
    assert [finding["hash"] for finding in payload["findings"]] == [h1]

    result = runner.invoke(cli, ["repair", "--json"], env=env)
    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["renames"][0]["destination"] == str(stored)
    assert report["orphans"] == []
    assert stored.exists()

    result = runner.invoke(cli, ["check", "--hashes"], env=env)
    assert result.exit_code == 0, result.output
    assert "consistent" in result.output


def test_cli_verify_lists_orphans(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, _ = _image(tmp_path, "photo.png", b"listed")
    _add(runner, env, photo, "x")
    orphan = _store_dir(tmp_path) / "stray.png"
    orphan.write_bytes(b"stray")

    result = runner.invoke(cli, ["verify", "--orphans", "--json"], env=env)

    assert json.loads(result.output)["orphans"] == [str(orphan)]


def test_cli_tag_list_and_rename(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    first, h1 = _image(tmp_path, "first.png", b"first")
    second, h2 = _image(tmp_path, "second.png", b"second")
    _add(runner, env, first, "sunset", "beach")
    _add(runner, env, second, "beach")

    result = runner.invoke(cli, ["tag", "list"], env=env)
    assert result.output.split() == ["beach", "sunset"]

    result = runner.invoke(cli, ["tag", "list", "--counts", "--json"], env=env)
    assert json.loads(result.output) == {"beach": 2, "sunset": 1}

    result = runner.invoke(cli, ["tag", "rename", "sunset", "beach"], env=env)
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli, ["tag", "list", "--json"], env=env)
    assert json.loads(result.output) == ["beach"]

    result = runner.invoke(cli, ["tag", "rename", "beach", "two words"], env=env)
    assert result.exit_code != 0


def test_cli_pick_any_and_all(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    first, h1 = _image(tmp_path, "first.jpg", b"first")
    second, h2 = _image(tmp_path, "second.png", b"second")
    _add(runner, env, first, "sunset", "beach")
    _add(runner, env, second, "beach")
    store = _store_dir(tmp_path)

    result = runner.invoke(cli, ["pick", "all", "sunset", "beach"], env=env)
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [str(store / f"{h1}.jpg")]

    result = runner.invoke(cli, ["pick", "any", "beach", "--json"], env=env)
    assert sorted(json.loads(result.output)["paths"]) == sorted(
        [str(store / f"{h1}.jpg"), str(store / f"{h2}.png")]
    )

    result = runner.invoke(cli, ["pick", "any", "beach", "-x", "sunset"], env=env)
    assert result.output.splitlines() == [str(store / f"{h2}.png")]


def test_cli_rejects_non_toml_metadata_file(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["IMGSTASH__STORE__METADATA_FILE"] = str(tmp_path / "images.json")

    result = runner.invoke(cli, ["show"], env=env)

    assert result.exit_code == 1
    assert ".toml" in result.output


def test_cli_store_location_from_environment(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["IMGSTASH__STORE__DIRECTORY"] = str(tmp_path / "elsewhere")
    env["IMGSTASH__STORE__METADATA_FILE"] = str(tmp_path / "elsewhere.toml")
    photo, h1 = _image(tmp_path, "photo.png", b"relocated")

    _add(runner, env, photo, "moved")

    assert (tmp_path / "elsewhere" / f"{h1}.png").exists()
    assert h1 in (tmp_path / "elsewhere.toml").read_text(encoding="utf-8")


def test_config_view_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "store:" in result.output


def test_config_set_updates_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "set", "git.enabled", "--value", "true"], env=env)

    assert result.exit_code == 0, result.output
    assert "Updated git.enabled" in result.output

    manager = ConfigManager(config_path=tmp_path / "home" / ".imgstash" / "config.yaml")
    assert manager.load(include_env=False).git.enabled is True

    result = runner.invoke(cli, ["config", "set", "git.enabled", "--value", "true"], env=env)
    assert "No changes applied" in result.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "processing.hash_chunk_size", "--value", "0"], env=env
    )

    assert result.exit_code != 0


def test_cli_interactive_add_merges_prompted_tags_and_source(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, h1 = _image(tmp_path, "photo.jpg", b"interactive pixels")

    result = runner.invoke(
        cli,
        ["add", str(photo), "-t", "sunset", "-t", "beach", "--interactive"],
        env=env,
        input="beach dusk\ncamera roll\n",
    )

    assert result.exit_code == 0, result.output
    assert "Tags (space separated)" in result.output
    assert "Source" in result.output
    entry = json.loads(runner.invoke(cli, ["show", h1, "--json"], env=env).output)[h1]
    assert entry["tags"] == ["sunset", "beach", "dusk"]
    assert entry["source"] == "camera roll"


def test_cli_interactive_add_without_any_tags_skips_file(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, h1 = _image(tmp_path, "photo.png", b"untagged")

    result = runner.invoke(cli, ["add", str(photo), "--interactive"], env=env, input="\n\n")

    assert result.exit_code == 0, result.output
    assert not (_store_dir(tmp_path) / f"{h1}.png").exists()


def test_cli_interactive_edit_keeps_source_on_empty_answer(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, h1 = _image(tmp_path, "photo.png", b"edit me")
    result = runner.invoke(
        cli, ["add", str(photo), "-t", "sunset", "-s", "album", "--no-interactive"], env=env
    )
    assert result.exit_code == 0, result.output

    result = runner.invoke(
        cli, ["edit", h1, "-t", "given", "--interactive"], env=env, input="typed sunset\n\n"
    )

    assert result.exit_code == 0, result.output
    entry = json.loads(runner.invoke(cli, ["show", h1, "--json"], env=env).output)[h1]
    assert entry["tags"] == ["sunset", "typed", "given"]
    assert entry["source"] == "album"


def test_cli_delete_confirmed_with_y(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    photo, h1 = _image(tmp_path, "photo.png", b"goodbye")
    _add(runner, env, photo, "bye")

    result = runner.invoke(cli, ["delete", h1], env=env, input="y")

    assert result.exit_code == 0, result.output
    assert not (_store_dir(tmp_path) / f"{h1}.png").exists()
    assert json.loads(runner.invoke(cli, ["show", "--json"], env=env).output) == {}


def _write_metadata(tmp_path: Path, text: str) -> None:
    metadata = tmp_path / "home" / ".imgstash" / "metadata.toml"
    metadata.parent.mkdir(parents=True, exist_ok=True)
    metadata.write_text(text, encoding="utf-8")


MALFORMED_DOCUMENT = f'["{"a" * 64}"]\nextension = "png"\ntags = "notalist"\n'


@pytest.mark.parametrize(
    "args",
    [
        ["verify"],
        ["check"],
        ["repair"],
        ["show"],
        ["tag", "list"],
        ["pick", "any", "x"],
        ["delete", "a" * 64, "--yes"],
        ["edit", "a" * 64, "-t", "x", "--no-interactive"],
    ],
)
def test_cli_reports_malformed_metadata(tmp_path: Path, args: list[str]) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    _write_metadata(tmp_path, MALFORMED_DOCUMENT)

    result = runner.invoke(cli, args, env=env)

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Malformed metadata document" in result.output


def test_cli_reports_unparseable_metadata_as_json(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    _write_metadata(tmp_path, "this is = = not toml")
    photo, _ = _image(tmp_path, "photo.png", b"x")

    result = runner.invoke(cli, ["add", str(photo), "-t", "x", "--json"], env=env)

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "metadata_error"


def test_cli_store_location_from_options(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["IMGSTASH__STORE__DIRECTORY"] = str(tmp_path / "from-env")
    photo, h1 = _image(tmp_path, "photo.png", b"optioned")
    store = tmp_path / "from-option"
    metadata = tmp_path / "option.toml"

    result = runner.invoke(
        cli,
        [
            "--store",
            str(store),
            "--metadata",
            str(metadata),
            "add",
            str(photo),
            "-t",
            "x",
            "--no-interactive",
        ],
        env=env,
    )

    assert result.exit_code == 0, result.output
    assert (store / f"{h1}.png").exists()
    assert not (tmp_path / "from-env" / f"{h1}.png").exists()
    assert h1 in metadata.read_text(encoding="utf-8")
