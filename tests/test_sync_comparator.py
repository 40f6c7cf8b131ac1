"""Tests for the ReconciliationEngine."""

from texsync.sync.comparator import (
    PlannedDownload,
    ReconciliationEngine,
    SyncAction,
    SyncDecision,
    build_plan,
)


def _plan(remote, local, revision=None):
    return ReconciliationEngine().plan(remote, local, revision)


class TestRemoteFiles:
    """Tests for decisions about files present in the repository."""

    def test_new_remote_file_downloads(self):
        """Scenario A: a missing file is downloaded to its plain path."""
        plan = _plan({"a.png": "111"}, {})

        assert plan.to_download == (PlannedDownload("a.png", "a.png"),)
        assert plan.to_delete == ()
        assert plan.skipped == 0

    def test_matching_file_is_up_to_date(self):
        """Test matching content is up to date."""
        plan = _plan({"a.png": "111"}, {"a.png": "111"})

        assert plan.is_up_to_date
        assert plan.up_to_date == 1

    def test_modified_file_downloads(self):
        """Test changed content is downloaded."""
        plan = _plan({"a.png": "222"}, {"a.png": "111"})

        assert plan.download_paths == ["a.png"]

    def test_up_to_date_disabled_copy_is_skipped(self):
        """Scenario B: an up-to-date disabled copy is left alone."""
        plan = _plan({"a.png": "111"}, {"-a.png": "111"})

        assert plan.to_download == ()
        assert plan.to_delete == ()
        assert plan.skipped == 1

    def test_stale_disabled_copy_downloads_to_disabled_path(self):
        """Scenario C: content comes from a.png and lands in -a.png."""
        plan = _plan({"a.png": "222"}, {"-a.png": "111"})

        assert plan.to_download == (PlannedDownload(path="-a.png", source="a.png"),)
        assert plan.to_delete == ()

    def test_stale_disabled_copy_in_subdirectory(self):
        """Test stale disabled copies in subdirectories are refreshed."""
        plan = _plan({"menus/a.png": "222"}, {"menus/-a.png": "111"})

        assert plan.to_download == (
            PlannedDownload(path="menus/-a.png", source="menus/a.png"),
        )

    def test_plain_match_wins_over_disabled_partner(self):
        """Each path is decided on its own status."""
        plan = _plan({"a.png": "111"}, {"a.png": "111", "-a.png": "999"})

        assert plan.to_download == ()
        assert plan.up_to_date == 1
        assert plan.to_delete == ()

    def test_excluded_remote_file_is_skipped(self):
        """Test remote files under user-customs are skipped."""
        plan = _plan({"user-customs/a.png": "111"}, {})

        assert plan.to_download == ()
        assert plan.skipped == 1

    def test_tracked_dash_file_is_not_a_disabled_copy(self):
        """Test a remote file named like a disabled copy keeps its own content."""
        remote = {"a.png": "one", "-a.png": "two"}

        plan = _plan(remote, {"-a.png": "two"})

        assert plan.to_download == (PlannedDownload("a.png", "a.png"),)
        assert plan.to_delete == ()

    def test_tracked_dash_file_outdated_downloads_from_itself(self):
        """Test a stale tracked dash file is refreshed from its own path."""
        remote = {"a.png": "one", "-a.png": "two"}

        plan = _plan(remote, {"a.png": "one", "-a.png": "old"})

        assert plan.to_download == (PlannedDownload("-a.png", "-a.png"),)

    def test_tracked_dash_file_converges(self):
        """Test applying the plan leaves nothing to do on the next run."""
        remote = {"a.png": "one", "-a.png": "two"}
        local = {"-a.png": "two"}

        plan = _plan(remote, local)
        for item in plan.to_download:
            local[item.path] = remote[item.source]

        assert local == remote
        assert _plan(remote, local).is_up_to_date

    def test_matching_is_case_sensitive(self):
        """Test paths differing only by case are distinct."""
        plan = _plan({"A.png": "111"}, {"a.png": "111"})

        assert plan.download_paths == ["A.png"]
        assert plan.to_delete == ("a.png",)


class TestLocalFiles:
    """Tests for decisions about local-only files."""

    def test_orphan_is_deleted_and_customs_kept(self):
        """Scenario D."""
        plan = _plan({}, {"old.png": "x", "user-customs/keep.png": "y"})

        assert plan.to_delete == ("old.png",)
        assert plan.to_download == ()

    def test_disabled_variant_of_existing_remote_is_kept(self):
        """Test a disabled copy of a tracked file is kept."""
        plan = _plan({"a.png": "111"}, {"-a.png": "111"})

        assert "-a.png" not in plan.to_delete

    def test_disabled_variant_of_removed_remote_is_deleted(self):
        """Test a disabled copy of a removed file is deleted."""
        plan = _plan({"b.png": "111"}, {"-a.png": "111"})

        assert plan.to_delete == ("-a.png",)

    def test_disabled_variant_in_subdirectory_kept(self):
        """Test disabled copies in subdirectories are kept."""
        plan = _plan({"menus/a.png": "111"}, {"menus/-a.png": "222"})

        assert plan.to_delete == ()

    def test_excluded_paths_never_planned(self):
        """Test user-customs paths never appear in a plan."""
        remote = {"user-customs/a.png": "1", "x/user-customs/b.png": "2"}
        local = {"user-customs/c.png": "3", "x/user-customs/b.png": "9"}
        plan = _plan(remote, local)

        planned = plan.download_paths + list(plan.to_delete)
        assert not any("user-customs" in p for p in planned)


class TestPlanProperties:
    """Tests for whole-plan properties."""

    def test_identical_mappings_need_nothing(self):
        """Test identical mappings give an empty plan."""
        files = {"a.png": "1", "menus/b.png": "2", "menus/-c.png": "3"}
        plan = _plan(files, dict(files))

        assert plan.to_download == ()
        assert plan.to_delete == ()
        assert plan.up_to_date == 3

    def test_deterministic_regardless_of_insertion_order(self):
        """Test plans do not depend on mapping order."""
        remote = {"b.png": "1", "a.png": "2", "c/d.png": "3"}
        local = {"z.png": "1", "-a.png": "0", "y.png": "5"}
        reversed_remote = dict(reversed(list(remote.items())))
        reversed_local = dict(reversed(list(local.items())))

        assert _plan(remote, local) == _plan(reversed_remote, reversed_local)

    def test_plan_is_sorted(self):
        """Test plan entries are sorted by path."""
        plan = _plan({"c.png": "1", "a.png": "1", "b/x.png": "1"}, {"z": "1", "m": "1"})

        assert plan.download_paths == ["a.png", "b/x.png", "c.png"]
        assert plan.to_delete == ("m", "z")

    def test_revision_is_carried(self):
        """Test the revision is stored on the plan."""
        assert _plan({}, {}, revision="abc123").revision == "abc123"

    def test_total(self):
        """Test total counts downloads and deletions."""
        plan = _plan({"a.png": "1", "b.png": "1"}, {"c.png": "1"})
        assert plan.total == 3


class TestCompare:
    """Tests for the decision list."""

    def test_reasons(self):
        """Test decision reasons."""
        decisions = ReconciliationEngine().compare(
            {"new.png": "1", "mod.png": "2", "-off.png": "3", "off.png": "4"},
            {"mod.png": "1", "old.png": "1", "-off.png": "3"},
        )
        by_path = {(d.relative_path, d.action): d for d in decisions}

        assert by_path[("new.png", SyncAction.DOWNLOAD)].reason == "New remote file"
        assert by_path[("mod.png", SyncAction.DOWNLOAD)].reason == "Modified remotely"
        assert (
            by_path[("old.png", SyncAction.DELETE)].reason
            == "File deleted from repository"
        )
        # "-off.png" is a tracked remote file, not a disabled copy of "off.png"
        assert ("-off.png", SyncAction.UP_TO_DATE) in by_path
        assert ("-off.png", SyncAction.DOWNLOAD) not in by_path
        assert by_path[("off.png", SyncAction.DOWNLOAD)].reason == "New remote file"

    def test_build_plan_counts(self):
        """Test build_plan counts skipped and up-to-date files."""
        decisions = ReconciliationEngine().compare(
            {"a.png": "1", "user-customs/b.png": "2"}, {"a.png": "1"}
        )
        plan = build_plan(decisions, "rev")

        assert plan.up_to_date == 1
        assert plan.skipped == 1
        assert plan.revision == "rev"

    def test_build_plan_downloads_each_target_once(self):
        """Test a target path is never scheduled twice."""
        decisions = [
            SyncDecision(
                SyncAction.DOWNLOAD, "Disabled copy is outdated", "-a.png", "a.png"
            ),
            SyncDecision(SyncAction.DOWNLOAD, "Modified remotely", "-a.png", "-a.png"),
        ]

        plan = build_plan(decisions, "rev")

        assert plan.to_download == (PlannedDownload("-a.png", "-a.png"),)
