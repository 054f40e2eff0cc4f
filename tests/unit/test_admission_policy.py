"""Unit tests for the snapshot admission policy."""

from llm_checkpoint.services import AdmissionPolicy, count_changed_lines


class TestCountChangedLines:
    """Test cases for changed-line counting."""

    def test_identical_texts(self):
        assert count_changed_lines("a\nb\nc", "a\nb\nc") == 0

    def test_modified_line_counts_twice(self):
        """A replaced line is one deletion plus one insertion."""
        assert count_changed_lines("a\nb\nc", "a\nB\nc") == 2

    def test_insertions_and_deletions(self):
        assert count_changed_lines("a\nb", "a\nb\nc\nd") == 2
        assert count_changed_lines("a\nb\nc\nd", "a") == 3

    def test_deleted_lines_resembling_diff_headers(self):
        """Content lines starting with -- or ++ are still counted."""
        assert count_changed_lines("a\n--flag\n++x\nd", "a\nd") == 2


class TestAdmissionPolicy:
    """Test cases for AdmissionPolicy."""

    def setup_method(self):
        """Set up test fixtures."""
        self.significant = AdmissionPolicy(save_all_changes=False)
        self.save_all = AdmissionPolicy(save_all_changes=True)

    def test_default_mode_is_significant_only(self):
        assert AdmissionPolicy().save_all_changes is False

    def test_identical_content_never_admitted(self):
        assert self.significant.should_admit("x\ny", "x\ny") is False
        assert self.save_all.should_admit("x\ny", "x\ny") is False

    def test_save_all_admits_any_change(self):
        assert self.save_all.should_admit("x", "y") is True
        assert self.save_all.should_admit("line\n", "line") is True

    def test_save_all_admits_first_snapshot(self):
        assert self.save_all.should_admit(None, "") is True
        assert self.save_all.should_admit(None, "single") is True

    def test_first_snapshot_needs_more_than_one_line(self):
        assert self.significant.should_admit(None, "single line") is False
        assert self.significant.should_admit(None, "") is False
        assert self.significant.should_admit(None, "one\ntwo") is True

    def test_single_line_edit_not_significant(self):
        previous = "a\nb\nc\nd"
        assert self.significant.should_admit(previous, "a\nB\nc\nd") is False

    def test_three_changed_lines_significant(self):
        previous = "a\nb\nc\nd"
        # one replaced line plus one appended line
        assert self.significant.should_admit(previous, "a\nB\nc\nd\ne") is True

    def test_threshold_is_strict(self):
        previous = "a\nb"
        assert self.significant.should_admit(previous, "a\nb\nc\nd") is False
        assert self.significant.should_admit(previous, "a\nb\nc\nd\ne") is True
