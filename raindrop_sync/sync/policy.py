"""What each sync mode is allowed to do."""

from __future__ import annotations

from dataclasses import dataclass

from raindrop_sync.core.sync_enums import SyncMode


@dataclass(frozen=True)
class ModePolicy:
    delete_local_on_remote_delete: bool
    delete_remote_on_local_delete: bool
    create_local: bool
    create_remote: bool
    reorder: bool
    create_folders: bool
    update_titles: bool


MODE_POLICIES: dict[SyncMode, ModePolicy] = {
    SyncMode.MIRROR: ModePolicy(
        delete_local_on_remote_delete=True,
        delete_remote_on_local_delete=True,
        create_local=True,
        create_remote=True,
        reorder=True,
        create_folders=True,
        update_titles=True,
    ),
    SyncMode.ADDITIONS_ONLY: ModePolicy(
        delete_local_on_remote_delete=False,
        delete_remote_on_local_delete=False,
        create_local=True,
        create_remote=True,
        reorder=False,
        create_folders=True,
        update_titles=False,
    ),
    SyncMode.OFF: ModePolicy(
        delete_local_on_remote_delete=False,
        delete_remote_on_local_delete=False,
        create_local=True,
        create_remote=False,
        reorder=False,
        create_folders=True,
        update_titles=False,
    ),
    SyncMode.UPLOAD_ONLY: ModePolicy(
        delete_local_on_remote_delete=False,
        delete_remote_on_local_delete=False,
        create_local=False,
        create_remote=True,
        reorder=False,
        create_folders=False,
        update_titles=False,
    ),
}


def policy_for(mode: SyncMode | str) -> ModePolicy:
    return MODE_POLICIES[SyncMode(mode)]
