"""Interactive update of the dotconfig checkout from its remote."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from . import log
from .errors import ToolMissingError, UpdateAborted
from .filesystem import BACKUP_TIMESTAMP_FORMAT
from .git import GitRepository
from .models import UpdateResult, UpdateStatus

Confirm = Callable[[str], bool]


def run_update(
    repo: GitRepository,
    *,
    remote: str = "origin",
    branch: str = "main",
    confirm: Confirm,
    rerun_setup: Callable[[], object] | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> UpdateResult:
    """Fetch, show and apply remote updates, asking before each destructive step.

    ``confirm`` receives a question and returns the operator's answer; it
    must default to "no". Declining to stash local changes aborts with
    ``UpdateAborted``; declining to apply or to re-run setup is not an error.
    """

    try:
        return _run_update(repo, remote=remote, branch=branch, confirm=confirm, rerun_setup=rerun_setup, clock=clock)
    except ToolMissingError as exc:
        log.warn(f"{exc}. Skipping update.")
        return UpdateResult(UpdateStatus.SKIPPED)


def _run_update(
    repo: GitRepository,
    *,
    remote: str,
    branch: str,
    confirm: Confirm,
    rerun_setup: Callable[[], object] | None,
    clock: Callable[[], datetime],
) -> UpdateResult:
    if repo.has_local_changes():
        log.warn("There are uncommitted local changes")
        for line in repo.status_short().splitlines():
            log.warn(f"  {line}")
        if not confirm("Stash local changes and continue?"):
            raise UpdateAborted("Update aborted: local changes were left untouched")
        repo.stash(f"dotconfig update {clock().strftime(BACKUP_TIMESTAMP_FORMAT)}")
        log.info("Local changes stashed")

    remote_ref = f"{remote}/{branch}"
    log.info(f"Fetching {remote_ref}...")
    repo.fetch(remote, branch)

    local = repo.rev_parse("HEAD")
    upstream = repo.rev_parse(remote_ref)
    if local == upstream:
        log.info("Already up to date")
        return UpdateResult(UpdateStatus.UP_TO_DATE, local=local, remote=upstream)

    log.info("Incoming changes:")
    for line in repo.log_oneline(f"HEAD..{remote_ref}"):
        log.info(f"  {line}")

    if not confirm("Apply updates?"):
        log.info("Update cancelled")
        return UpdateResult(UpdateStatus.CANCELLED, local=local, remote=upstream)

    repo.pull(remote, branch)
    log.info("Update complete")

    reran = False
    if rerun_setup is not None and confirm("Re-run setup?"):
        rerun_setup()
        reran = True

    return UpdateResult(UpdateStatus.UPDATED, local=local, remote=upstream, reran_setup=reran)
