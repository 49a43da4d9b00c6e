"""Release state machine.

``ReleaseOrchestrator.run`` walks the phases of a release in a single
forward pass::

    loop_check -> tag_discovery -> commit_collection -> classification
    -> version_compute -> notes_generation -> file_updates -> commit_and_tag
    -> floating_tag_update -> platform_publish -> done

Loop prevention, an empty commit range and a batch with no bump end the run
early with an ``Ok`` outcome. Any gateway failure ends it with an ``Err``
carrying the phase it happened in; nothing already applied is rolled back.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path

from rk.core.result import Err, Ok, Result
from rk.git.repository import GitError
from rk.output.console import ConsoleProtocol
from rk.release.classify import classify, dedupe_rules, parse_commits
from rk.release.config import ReleaseConfig
from rk.release.errors import ReleaseError
from rk.release.floating import floating_refs
from rk.release.gateways import FileUpdater, HostingGateway, VcsGateway
from rk.release.model import (
    BASELINE_TAG,
    BumpLevel,
    FileTarget,
    FloatingRef,
    Phase,
    ReleaseDecision,
    RunOutcome,
    UpdaterKind,
)
from rk.release.notes import build_changelog_entry, build_notes, prepend_changelog
from rk.release.semver import STRICT_TAG_PATTERN, next_version, parse_strict_tag

RELEASE_COMMIT_PREFIX = "chore: release v"


def release_commit_message(tag: str) -> str:
    return f"chore: release {tag}"


def floating_release_body(real_tag: str, notes: str) -> str:
    return f"This is a floating release that points to the latest version: **{real_tag}**.\n\n{notes}"


def _git_error(e: GitError, phase: Phase) -> ReleaseError:
    return ReleaseError(
        kind="tag_exists" if e.conflict else "git_failed",
        message=f"git {e.command} failed: {e.message}",
        phase=phase,
    )


class ReleaseOrchestrator:
    def __init__(
        self,
        *,
        vcs: VcsGateway,
        hosting: HostingGateway,
        updater: FileUpdater,
        config: ReleaseConfig,
        console: ConsoleProtocol,
        root: Path,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._vcs = vcs
        self._hosting = hosting
        self._updater = updater
        self._config = config
        self._console = console
        self._root = root
        self._today = today
        self._rules, _ = dedupe_rules(config.commit_types)

    # -- public ----------------------------------------------------------

    def run(self, *, dry_run: bool = False) -> Result[RunOutcome, ReleaseError]:
        looping = self.is_release_loop()
        if isinstance(looping, Err):
            return looping
        if looping.value:
            self._console.warning(
                "Loop Prevention: Last commit is a release commit by "
                f"{self._config.identity.name}. Exiting to prevent duplicate releases."
            )
            return Ok(RunOutcome(status="loop_prevented"))

        decided = self.decide()
        if isinstance(decided, Err):
            return decided
        decision = decided.value
        if decision is None:
            self._console.info("No new commits since last tag. Exiting.")
            return Ok(RunOutcome(status="no_commits"))
        if decision.bump == BumpLevel.NONE:
            self._console.info("No commit requires a version bump. Exiting.")
            return Ok(RunOutcome(status="no_bump", decision=decision))

        refs = floating_refs(
            decision.tag,
            update_latest=self._config.floating_tags.update_latest,
            update_majors=self._config.floating_tags.update_majors,
        )
        if dry_run:
            self._console.info(f"Dry run: {decision.tag} would be released.")
            return Ok(RunOutcome(status="dry_run", decision=decision, floating_refs=refs))

        if self._config.github.enabled and not self._hosting.tool_available():
            return Err(
                ReleaseError(
                    kind="gh_missing",
                    message="GitHub CLI (gh) is not installed",
                    hint="Install GitHub CLI: https://cli.github.com/",
                    phase=Phase.PLATFORM_PUBLISH,
                )
            )

        updated = self._write_files(decision)
        if isinstance(updated, Err):
            return updated

        tagged = self._commit_and_tag(decision)
        if isinstance(tagged, Err):
            return tagged

        moved = self._move_floating_tags(refs)
        if isinstance(moved, Err):
            return moved

        if self._config.github.enabled:
            published = self._publish(decision, refs)
            if isinstance(published, Err):
                return published

        return Ok(
            RunOutcome(
                status="released",
                decision=decision,
                floating_refs=refs,
                updated_files=updated.value,
            )
        )

    def is_release_loop(self) -> Result[bool, ReleaseError]:
        """True when HEAD is a release commit made by the automation identity."""
        subject = self._vcs.last_commit_subject()
        if isinstance(subject, Err):
            return Err(_git_error(subject.error, Phase.LOOP_CHECK))
        author = self._vcs.last_commit_author()
        if isinstance(author, Err):
            return Err(_git_error(author.error, Phase.LOOP_CHECK))

        return Ok(
            subject.value.startswith(RELEASE_COMMIT_PREFIX)
            and author.value == self._config.identity.name
        )

    def decide(self) -> Result[ReleaseDecision | None, ReleaseError]:
        """Compute the next release without mutating anything.

        Returns None when there are no commits after the last version tag.
        """
        found = self._vcs.last_matching_tag(STRICT_TAG_PATTERN)
        if isinstance(found, Err):
            return Err(_git_error(found.error, Phase.TAG_DISCOVERY))
        last_tag = found.value or BASELINE_TAG
        current = parse_strict_tag(last_tag)
        if current is None:
            return Err(
                ReleaseError(
                    kind="git_failed",
                    message=f"Tag discovery returned '{last_tag}', which is not a vX.Y.Z tag",
                    phase=Phase.TAG_DISCOVERY,
                )
            )
        self._console.info(f"Last tag: {last_tag}")

        subjects = self._vcs.commit_subjects_since(found.value)
        if isinstance(subjects, Err):
            return Err(_git_error(subjects.error, Phase.COMMIT_COLLECTION))
        if not subjects.value:
            return Ok(None)

        self._console.info("Commits since last tag:")
        for subject in subjects.value:
            self._console.info(f"  - {subject}")

        bump = classify(subjects.value, self._rules)
        version = next_version(current, bump)
        self._console.info(f"Bump type: {bump}")
        if bump != BumpLevel.NONE:
            self._console.info(f"Changing version from {last_tag} to {version.to_tag()}")

        commits = parse_commits(subjects.value, self._rules)
        return Ok(
            ReleaseDecision(
                previous_tag=last_tag,
                next_version=version,
                bump=bump,
                commits=commits,
                notes=build_notes(commits, self._rules),
            )
        )

    # -- phases ----------------------------------------------------------

    def _write_files(self, decision: ReleaseDecision) -> Result[tuple[Path, ...], ReleaseError]:
        staged: list[Path] = []

        changelog = self._config.changelog
        if changelog.enabled:
            entry = build_changelog_entry(decision.tag, decision.notes, self._today())
            written = prepend_changelog(self._root / changelog.output, entry)
            if isinstance(written, Err):
                return Err(written.error.in_phase(Phase.FILE_UPDATES))
            self._console.success(f"Changelog updated at {changelog.output}")
            staged.append(changelog.output)
        else:
            self._console.info("Changelog generation is disabled.")

        for target in self._config.targets:
            result = self._update_target(target, str(decision.next_version))
            if isinstance(result, Err):
                return result
            if result.value:
                staged.append(target.path)

        if staged:
            ok = self._vcs.stage(staged)
            if isinstance(ok, Err):
                return Err(_git_error(ok.error, Phase.FILE_UPDATES))
        return Ok(tuple(staged))

    def _update_target(self, target: FileTarget, version: str) -> Result[bool, ReleaseError]:
        path = self._root / target.path
        if target.kind == UpdaterKind.UNSUPPORTED:
            self._console.warning(
                f"Unsupported updater type '{target.raw_kind}' for {target.path}; skipping"
            )
            return Ok(False)
        if target.kind == UpdaterKind.CUSTOM_REGEX and not target.pattern:
            self._console.warning(f"No pattern provided for custom-regex target {target.path}; skipping")
            return Ok(False)
        if not path.is_file():
            self._console.warning(f"File not found: {target.path}; skipping")
            return Ok(False)

        result = self._updater.update(path, version, target.kind, target.pattern)
        if isinstance(result, Err):
            return Err(result.error.in_phase(Phase.FILE_UPDATES))
        if not result.value.updated:
            self._console.warning(f"{target.path} not updated: {result.value.reason}")
            return Ok(False)

        self._console.success(f"Updated {target.path} ({target.kind}) to {version}")
        return Ok(True)

    def _commit_and_tag(self, decision: ReleaseDecision) -> Result[None, ReleaseError]:
        phase = Phase.COMMIT_AND_TAG
        identity = self._config.identity

        ok = self._vcs.configure_identity(identity.name, identity.email)
        if isinstance(ok, Err):
            return Err(_git_error(ok.error, phase))

        staged = self._vcs.has_staged_changes()
        if isinstance(staged, Err):
            return Err(_git_error(staged.error, phase))
        if staged.value:
            ok = self._vcs.commit(release_commit_message(decision.tag))
            if isinstance(ok, Err):
                return Err(_git_error(ok.error, phase))
        else:
            self._console.info(f"No changes to commit for release {decision.tag}")

        ok = self._vcs.tag(decision.tag)
        if isinstance(ok, Err):
            return Err(_git_error(ok.error, phase))

        ok = self._vcs.push_current_branch_and_tags()
        if isinstance(ok, Err):
            return Err(_git_error(ok.error, phase))

        self._console.success(f"Release {decision.tag} created successfully!")
        return Ok(None)

    def _move_floating_tags(self, refs: tuple[FloatingRef, ...]) -> Result[None, ReleaseError]:
        phase = Phase.FLOATING_TAG_UPDATE
        for ref in refs:
            ok = self._vcs.force_tag(ref.name)
            if isinstance(ok, Err):
                return Err(_git_error(ok.error, phase))
            ok = self._vcs.force_push_tag(ref.name)
            if isinstance(ok, Err):
                return Err(_git_error(ok.error, phase))
            self._console.success(f"Floating tag '{ref.name}' moved")
        return Ok(None)

    def _publish(
        self, decision: ReleaseDecision, refs: tuple[FloatingRef, ...]
    ) -> Result[None, ReleaseError]:
        phase = Phase.PLATFORM_PUBLISH
        tag = decision.tag
        body = decision.notes or f"Automated release {tag}"

        self._console.info(f"Creating GitHub release for tag {tag}")
        ok = self._hosting.create_release(tag, tag, body)
        if isinstance(ok, Err):
            return Err(ok.error.in_phase(phase))

        for ref in refs:
            self._console.info(f"Updating GitHub release for floating tag '{ref.name}' -> {tag}")
            ok = self._hosting.delete_release(ref.name)
            if isinstance(ok, Err):
                return Err(ok.error.in_phase(phase))
            ok = self._hosting.create_floating_release(
                ref.name,
                f"{ref.name} (Matches {tag})",
                floating_release_body(tag, decision.notes),
                mark_as_latest=False,
            )
            if isinstance(ok, Err):
                return Err(ok.error.in_phase(phase))
            self._console.success(f"GitHub floating release '{ref.name}' updated to {tag}")

        self._console.success(f"GitHub release {tag} created successfully!")
        return Ok(None)
