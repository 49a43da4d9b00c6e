"""End-to-end release runs against the in-memory gateways."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import pytest

from rk.core.result import Err, Ok, Result
from rk.git.repository import GitError
from rk.output.console import MockConsole, Style
from rk.release.config import (
    ChangelogConfig,
    FloatingTagsConfig,
    GitHubConfig,
    IdentityConfig,
    ReleaseConfig,
)
from rk.release.errors import ReleaseError
from rk.release.fakes import MemoryHosting, MemoryRelease, MemoryRepository
from rk.release.gateways import UpdateOutcome
from rk.release.model import (
    BumpLevel,
    CommitTypeRule,
    FileTarget,
    Phase,
    RunOutcome,
    UpdaterKind,
    Version,
)
from rk.release.orchestrator import ReleaseOrchestrator
from rk.release.updaters import VersionFileUpdater

BOT = "GitHub Actions"


@dataclass
class RecordingUpdater:
    calls: list[tuple[Path, str, UpdaterKind]] = field(default_factory=list)
    fail: bool = False

    def update(
        self, path: Path, version: str, kind: UpdaterKind, pattern: str | None
    ) -> Result[UpdateOutcome, ReleaseError]:
        self.calls.append((path, version, kind))
        if self.fail:
            return Err(ReleaseError(kind="file_update_failed", message="disk full"))
        return Ok(UpdateOutcome(updated=True))


@dataclass
class Harness:
    root: Path
    vcs: MemoryRepository
    hosting: MemoryHosting
    console: MockConsole
    updater: VersionFileUpdater | RecordingUpdater

    def run(self, config: ReleaseConfig, *, dry_run: bool = False) -> Result[RunOutcome, ReleaseError]:
        orchestrator = ReleaseOrchestrator(
            vcs=self.vcs,
            hosting=self.hosting,
            updater=self.updater,
            config=config,
            console=self.console,
            root=self.root,
            today=lambda: date(2024, 5, 1),
        )
        return orchestrator.run(dry_run=dry_run)

    def released(self, config: ReleaseConfig) -> RunOutcome:
        result = self.run(config)
        assert isinstance(result, Ok), result
        return result.value


@pytest.fixture
def h(tmp_path: Path) -> Harness:
    return Harness(
        root=tmp_path,
        vcs=MemoryRepository(),
        hosting=MemoryHosting(),
        console=MockConsole(),
        updater=VersionFileUpdater(),
    )


def _config(**overrides: object) -> ReleaseConfig:
    base: dict[str, object] = {"changelog": ChangelogConfig(enabled=False)}
    base.update(overrides)
    return ReleaseConfig(**base)  # type: ignore[arg-type]


# =============================================================================
# Scenarios
# =============================================================================


class TestScenarios:
    def test_first_release_from_baseline(self, h: Harness) -> None:
        h.vcs.add_commit("fix: a")
        h.vcs.add_commit("feat: b")

        outcome = h.released(_config())

        assert outcome.status == "released"
        assert outcome.decision is not None
        assert outcome.decision.previous_tag == "v0.0.0"
        assert outcome.decision.bump == BumpLevel.MINOR
        assert outcome.decision.next_version == Version(0, 1, 0)
        assert "v0.1.0" in h.vcs.tags
        assert "Last tag: v0.0.0" in h.console.messages
        assert "Bump type: minor" in h.console.messages
        assert "Changing version from v0.0.0 to v0.1.0" in h.console.messages

    def test_breaking_change_is_major(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.add_tag("v1.4.2")
        h.vcs.add_commit("feat!: drop X")

        outcome = h.released(_config())

        assert outcome.decision is not None
        assert outcome.decision.bump == BumpLevel.MAJOR
        assert outcome.decision.tag == "v2.0.0"

    def test_no_commits_is_successful_noop(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.add_tag("v1.0.0")

        outcome = h.released(_config())

        assert outcome.status == "no_commits"
        assert h.vcs.tags == {"v1.0.0": 0}
        assert not any(c.startswith(("tag ", "push", "commit ")) for c in h.vcs.calls)

    def test_loop_prevention(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.add_commit("chore: release v1.0.0", author=BOT)

        outcome = h.released(_config(github=GitHubConfig(enabled=True)))

        assert outcome.status == "loop_prevented"
        assert h.vcs.tags == {}
        assert h.vcs.calls == []
        assert h.hosting.calls == []
        assert h.console.has_warning()

    def test_release_commit_by_a_human_is_not_a_loop(self, h: Harness) -> None:
        h.vcs.add_commit("chore: release v1.0.0", author="Somebody")
        h.vcs.add_commit("fix: a")

        assert h.released(_config()).status == "released"

    def test_loop_check_uses_configured_identity(self, h: Harness) -> None:
        h.vcs.add_commit("chore: release v1.0.0", author="Release Bot")

        config = _config(identity=IdentityConfig(name="Release Bot", email="bot@example.com"))

        assert h.released(config).status == "loop_prevented"

    @pytest.mark.parametrize(
        ("subject", "expected"),
        [("fix: a", "v1.9.10"), ("feat: a", "v1.10.0"), ("feat!: a", "v2.0.0")],
    )
    def test_next_version_from_v1_9_9(self, h: Harness, subject: str, expected: str) -> None:
        h.vcs.add_commit("feat: base")
        h.vcs.add_tag("v1.9.9")
        h.vcs.add_commit(subject)

        outcome = h.released(_config())

        assert outcome.decision is not None
        assert outcome.decision.tag == expected

    def test_floating_tags(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.add_tag("v1.3.0")
        h.vcs.add_commit("feat!: b")

        outcome = h.released(
            _config(floating_tags=FloatingTagsConfig(update_latest=True, update_majors=True))
        )

        assert [r.name for r in outcome.floating_refs] == ["latest", "v2"]
        head = h.vcs.head
        assert h.vcs.tags["v2.0.0"] == head
        assert h.vcs.tags["latest"] == head
        assert h.vcs.tags["v2"] == head
        assert h.vcs.calls[-4:] == [
            "force_tag latest",
            "force_push_tag latest",
            "force_tag v2",
            "force_push_tag v2",
        ]


# =============================================================================
# Phases
# =============================================================================


class TestTagDiscovery:
    def test_floating_tags_are_not_release_tags(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.add_tag("v1.2.0")
        h.vcs.add_commit("fix: b")
        h.vcs.add_tag("latest")
        h.vcs.add_tag("v1")
        h.vcs.add_commit("fix: c")

        outcome = h.released(_config())

        assert outcome.decision is not None
        assert outcome.decision.previous_tag == "v1.2.0"
        assert [c.subject for c in outcome.decision.commits] == ["fix: c", "fix: b"]
        assert outcome.decision.tag == "v1.2.1"

    def test_git_failure_reports_phase(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.fail_on.add("last_matching_tag")

        result = h.run(_config())

        assert isinstance(result, Err)
        assert result.error.kind == "git_failed"
        assert result.error.phase == Phase.TAG_DISCOVERY

    def test_non_release_tag_from_discovery_is_rejected(self, h: Harness) -> None:
        class LooseTags(MemoryRepository):
            def last_matching_tag(self, pattern: str) -> Result[str | None, GitError]:
                return Ok("latest")

        h.vcs = LooseTags()
        h.vcs.add_commit("feat: a")

        result = h.run(_config())

        assert isinstance(result, Err)
        assert result.error.kind == "git_failed"
        assert result.error.phase == Phase.TAG_DISCOVERY
        assert "'latest'" in result.error.message
        assert h.vcs.tags == {}


class TestNoBump:
    def test_only_hidden_types(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.add_tag("v1.0.0")
        h.vcs.add_commit("docs: readme")

        outcome = h.released(_config(github=GitHubConfig(enabled=True)))

        assert outcome.status == "no_bump"
        assert list(h.vcs.tags) == ["v1.0.0"]
        assert h.hosting.calls == []


class TestDryRun:
    def test_dry_run_changes_nothing(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        (h.root / "VERSION").write_text("0.0.0\n", encoding="utf-8")
        config = _config(
            changelog=ChangelogConfig(enabled=True),
            targets=(FileTarget(Path("VERSION"), UpdaterKind.TEXT),),
            github=GitHubConfig(enabled=True),
        )

        result = h.run(config, dry_run=True)

        assert isinstance(result, Ok)
        assert result.value.status == "dry_run"
        assert result.value.decision is not None
        assert result.value.decision.tag == "v0.1.0"
        assert h.vcs.tags == {}
        assert h.hosting.calls == []
        assert not (h.root / "CHANGELOG.md").exists()
        assert (h.root / "VERSION").read_text(encoding="utf-8") == "0.0.0\n"


class TestFileUpdates:
    def test_changelog_and_targets_are_committed(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        (h.root / "package.json").write_text('{"version": "0.0.0"}', encoding="utf-8")
        (h.root / "CHANGELOG.md").write_text("# v0.0.0 (2024-01-01)\n\nold\n\n", encoding="utf-8")
        config = _config(
            changelog=ChangelogConfig(enabled=True),
            targets=(FileTarget(Path("package.json"), UpdaterKind.NPM),),
        )

        outcome = h.released(config)

        assert outcome.updated_files == (Path("CHANGELOG.md"), Path("package.json"))
        assert json.loads((h.root / "package.json").read_text(encoding="utf-8")) == {
            "version": "0.1.0"
        }
        assert (h.root / "CHANGELOG.md").read_text(encoding="utf-8") == (
            "# v0.1.0 (2024-05-01)\n\n### Features\n\n- feat: a\n\n"
            "# v0.0.0 (2024-01-01)\n\nold\n\n"
        )
        assert "commit chore: release v0.1.0" in h.vcs.calls
        assert h.vcs.commits[-1].author == BOT
        assert h.vcs.tags["v0.1.0"] == h.vcs.head
        assert h.vcs.calls.index("stage CHANGELOG.md package.json") < h.vcs.calls.index(
            "commit chore: release v0.1.0"
        )

    def test_skips_are_warnings(self, h: Harness) -> None:
        h.vcs.add_commit("fix: a")
        (h.root / "Cargo.toml").write_text('version = "0.0.0"\n', encoding="utf-8")
        (h.root / "setup.txt").write_text("nothing\n", encoding="utf-8")
        updater = RecordingUpdater()
        h.updater = updater
        config = _config(
            targets=(
                FileTarget(Path("missing.json"), UpdaterKind.JSON),
                FileTarget(Path("Cargo.toml"), UpdaterKind.UNSUPPORTED, raw_kind="cargo"),
                FileTarget(Path("setup.txt"), UpdaterKind.CUSTOM_REGEX, pattern=""),
            )
        )

        outcome = h.released(config)

        assert outcome.status == "released"
        assert updater.calls == []
        warnings = h.console.of_style(Style.WARNING)
        assert len(warnings) == 3
        assert any("missing.json" in w for w in warnings)
        assert any("'cargo'" in w for w in warnings)
        assert any("custom-regex" in w for w in warnings)

    def test_tag_only_release_when_nothing_changed(self, h: Harness) -> None:
        h.vcs.add_commit("fix: a")

        outcome = h.released(_config())

        assert outcome.updated_files == ()
        assert not any(c.startswith("commit ") for c in h.vcs.calls)
        assert "tag v0.0.1" in h.vcs.calls
        assert "push" in h.vcs.calls
        assert "No changes to commit for release v0.0.1" in h.console.messages

    def test_updater_error_is_fatal(self, h: Harness) -> None:
        h.vcs.add_commit("fix: a")
        (h.root / "VERSION").write_text("0.0.0\n", encoding="utf-8")
        h.updater = RecordingUpdater(fail=True)

        result = h.run(_config(targets=(FileTarget(Path("VERSION"), UpdaterKind.TEXT),)))

        assert isinstance(result, Err)
        assert result.error.phase == Phase.FILE_UPDATES
        assert result.error.kind == "file_update_failed"
        assert h.vcs.tags == {}


class TestCommitAndTag:
    def test_existing_tag_is_conflict(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.tags["v0.1.0"] = 5  # not reachable from HEAD

        result = h.run(_config())

        assert isinstance(result, Err)
        assert result.error.kind == "tag_exists"
        assert result.error.phase == Phase.COMMIT_AND_TAG
        assert "push" not in h.vcs.calls

    def test_push_failure_is_fatal(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.fail_on.add("push")

        result = h.run(_config(floating_tags=FloatingTagsConfig(update_latest=True)))

        assert isinstance(result, Err)
        assert result.error.kind == "git_failed"
        assert result.error.phase == Phase.COMMIT_AND_TAG
        assert "remote rejected" in result.error.message
        # The local tag stays; nothing is rolled back.
        assert "v0.1.0" in h.vcs.tags
        assert "latest" not in h.vcs.tags

    def test_identity_is_configured(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")

        h.released(_config(identity=IdentityConfig(name="Bot", email="bot@example.com")))

        assert h.vcs.identity == ("Bot", "bot@example.com")

    def test_floating_tag_failure_reports_phase(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.fail_on.add("force_push_tag")

        result = h.run(_config(floating_tags=FloatingTagsConfig(update_latest=True)))

        assert isinstance(result, Err)
        assert result.error.phase == Phase.FLOATING_TAG_UPDATE


class TestPlatformPublish:
    def test_release_and_floating_releases(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.vcs.add_tag("v1.0.0")
        h.vcs.add_commit("feat: b")
        h.hosting.releases["latest"] = MemoryRelease("latest (Matches v1.0.0)", "old", latest=False)

        h.released(
            _config(
                github=GitHubConfig(enabled=True),
                floating_tags=FloatingTagsConfig(update_latest=True, update_majors=True),
            )
        )

        assert h.hosting.calls == [
            "create_release v1.1.0",
            "delete_release latest",
            "create_floating_release latest",
            "delete_release v1",
            "create_floating_release v1",
        ]
        main = h.hosting.releases["v1.1.0"]
        assert main.title == "v1.1.0"
        assert main.body == "### Features\n\n- feat: b"

        latest = h.hosting.releases["latest"]
        assert latest.title == "latest (Matches v1.1.0)"
        assert latest.latest is False
        assert latest.body.startswith(
            "This is a floating release that points to the latest version: **v1.1.0**."
        )
        assert latest.body.endswith("- feat: b")
        assert h.hosting.releases["v1"].title == "v1 (Matches v1.1.0)"

    def test_empty_notes_fallback(self, h: Harness) -> None:
        h.vcs.add_commit("perf: faster")
        config = _config(
            github=GitHubConfig(enabled=True),
            commit_types=(
                CommitTypeRule("feat", "Features", BumpLevel.MINOR),
                CommitTypeRule("perf", "Performance", BumpLevel.PATCH, hidden=True),
            ),
        )

        h.released(config)

        assert h.hosting.releases["v0.0.1"].body == "Automated release v0.0.1"

    def test_publishing_disabled(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")

        h.released(_config(github=GitHubConfig(enabled=False)))

        assert h.hosting.calls == []

    def test_missing_tool_aborts_before_mutation(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.hosting.available = False

        result = h.run(_config(github=GitHubConfig(enabled=True)))

        assert isinstance(result, Err)
        assert result.error.kind == "gh_missing"
        assert h.vcs.tags == {}

    def test_hosting_failure_after_tag_reports_phase(self, h: Harness) -> None:
        h.vcs.add_commit("feat: a")
        h.hosting.fail_on.add("create_release")

        result = h.run(_config(github=GitHubConfig(enabled=True)))

        assert isinstance(result, Err)
        assert result.error.kind == "hosting_failed"
        assert result.error.phase == Phase.PLATFORM_PUBLISH
        assert "v0.1.0" in h.vcs.pushed_tags

