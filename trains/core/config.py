"""Typed configuration loading and access.

The configuration lives in `.release-trains.toml` at the repository root:

    [github]
    owner = "acme"
    name = "widgets"
    main_branch = "main"

    [merge]
    merge_ready_label = "action: merge"
    cla_signed_label = "cla: yes"
    target_label_exempt_scopes = ["docs-infra"]

    [merge.required_base_commits]
    main = "4f0b7d2..."

    [[merge.custom_labels]]
    pattern = "target: automation"
    branches = ["main"]

    [release]
    npm_packages = ["@acme/widgets"]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "Config",
    "ConfigError",
    "CustomLabelConfig",
    "GithubConfig",
    "MergeConfig",
    "ReleaseConfig",
    "load_config",
]

CONFIG_FILE_NAME = ".release-trains.toml"

DEFAULT_MAIN_BRANCH = "main"
DEFAULT_BREAKING_CHANGE_LABEL = "breaking changes"
DEFAULT_NPM_REGISTRY = "https://registry.npmjs.org"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or is invalid."""

    message: str
    path: Path | None = None
    details: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GithubConfig:
    owner: str
    name: str
    main_branch: str = DEFAULT_MAIN_BRANCH
    use_ssh: bool = False

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class CustomLabelConfig:
    """A project-specific target label merged into a fixed set of branches."""

    pattern: str
    branches: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class MergeConfig:
    merge_ready_label: str
    cla_signed_label: str
    commit_message_fixup_label: str | None = None
    caretaker_note_label: str | None = None
    breaking_change_label: str = DEFAULT_BREAKING_CHANGE_LABEL
    target_label_exempt_scopes: tuple[str, ...] = ()
    # Keyed by the branch a PR targets in the GitHub UI.
    required_base_commits: Mapping[str, str] = field(default_factory=dict)
    custom_labels: tuple[CustomLabelConfig, ...] = ()


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    npm_packages: tuple[str, ...] = ()
    publish_registry: str = DEFAULT_NPM_REGISTRY
    release_pr_labels: tuple[str, ...] = ()

    @property
    def representative_package(self) -> str | None:
        """Package whose NPM dist tags stand in for the whole project."""
        return self.npm_packages[0] if self.npm_packages else None


@dataclass(frozen=True, slots=True)
class Config:
    github: GithubConfig
    merge: MergeConfig
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[Config, ConfigError]:
        """Validate a parsed TOML mapping, collecting every problem found."""
        errors: list[str] = []

        github: StrDict = get_table(data, "github") or {}
        merge: StrDict = get_table(data, "merge") or {}
        release: StrDict = get_table(data, "release") or {}

        owner = get_str(github, "owner")
        name = get_str(github, "name")
        if owner is None:
            errors.append("github.owner is required")
        if name is None:
            errors.append("github.name is required")

        merge_ready = get_str(merge, "merge_ready_label")
        cla_signed = get_str(merge, "cla_signed_label")
        if merge_ready is None:
            errors.append("merge.merge_ready_label is required")
        if cla_signed is None:
            errors.append("merge.cla_signed_label is required")

        exempt_scopes = get_str_list(merge, "target_label_exempt_scopes")
        if "target_label_exempt_scopes" in merge and exempt_scopes is None:
            errors.append("merge.target_label_exempt_scopes must be a list of strings")

        required_base_commits: dict[str, str] = {}
        for branch, sha in (get_table(merge, "required_base_commits") or {}).items():
            if not isinstance(sha, str) or not sha.strip():
                errors.append(f"merge.required_base_commits.{branch} must be a commit SHA")
                continue
            required_base_commits[branch] = sha.strip()

        custom_labels = _parse_custom_labels(merge.get("custom_labels"), errors)

        npm_packages = get_str_list(release, "npm_packages")
        if "npm_packages" in release and npm_packages is None:
            errors.append("release.npm_packages must be a list of strings")
        pr_labels = get_str_list(release, "release_pr_labels")
        if "release_pr_labels" in release and pr_labels is None:
            errors.append("release.release_pr_labels must be a list of strings")

        if errors or owner is None or name is None or merge_ready is None or cla_signed is None:
            return Err(ConfigError("Invalid configuration", details=tuple(errors)))

        return Ok(
            cls(
                github=GithubConfig(
                    owner=owner,
                    name=name,
                    main_branch=get_str(github, "main_branch") or DEFAULT_MAIN_BRANCH,
                    use_ssh=bool(get_bool(github, "use_ssh")),
                ),
                merge=MergeConfig(
                    merge_ready_label=merge_ready,
                    cla_signed_label=cla_signed,
                    commit_message_fixup_label=get_str(merge, "commit_message_fixup_label"),
                    caretaker_note_label=get_str(merge, "caretaker_note_label"),
                    breaking_change_label=get_str(merge, "breaking_change_label")
                    or DEFAULT_BREAKING_CHANGE_LABEL,
                    target_label_exempt_scopes=tuple(exempt_scopes or ()),
                    required_base_commits=required_base_commits,
                    custom_labels=custom_labels,
                ),
                release=ReleaseConfig(
                    npm_packages=tuple(npm_packages or ()),
                    publish_registry=get_str(release, "publish_registry")
                    or DEFAULT_NPM_REGISTRY,
                    release_pr_labels=tuple(pr_labels or ()),
                ),
            )
        )


def _parse_custom_labels(raw: object, errors: list[str]) -> tuple[CustomLabelConfig, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        errors.append("merge.custom_labels must be an array of tables")
        return ()

    out: list[CustomLabelConfig] = []
    for i, item in enumerate(raw):
        table = as_str_dict(item)
        if table is None:
            errors.append(f"merge.custom_labels[{i}] must be a table")
            continue
        pattern = get_str(table, "pattern")
        branches = get_str_list(table, "branches")
        if pattern is None or not branches:
            errors.append(f"merge.custom_labels[{i}] needs a pattern and branches")
            continue
        out.append(CustomLabelConfig(pattern=pattern, branches=tuple(branches)))
    return tuple(out)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate `.release-trains.toml`.

    Args:
        path: Path to the config file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed

    result = Config.from_dict(parsed.value)
    if isinstance(result, Err):
        return Err(
            ConfigError(result.error.message, path=path, details=result.error.details)
        )
    return result
