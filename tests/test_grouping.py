"""Tests for the file grouper and pagination."""

import pytest

from src.core.exceptions import InvalidInputError
from src.services.reviewer.budget import budget_patch
from src.services.reviewer.grouping import (
    affinity_key,
    detect_language,
    directory_key,
    group_files,
    paginate_files,
)


def budgeted(make_file, filename, size, max_patch_chars=100_000):
    return budget_patch(make_file(filename, patch="+" * size), max_patch_chars)


class TestKeys:
    """Tests for bucket key derivation."""

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("src/api/routes.ts", "typescript"),
            ("app/models.py", "python"),
            ("Makefile", "other"),
            ("docs/guide.MD", "docs"),
            ("cmd/main.go", "go"),
        ],
    )
    def test_detect_language(self, filename, expected):
        assert detect_language(filename) == expected

    def test_directory_key_depth(self):
        assert directory_key("src/services/api/routes.py", 2) == "src/services"
        assert directory_key("src/main.py", 2) == "src"
        assert directory_key("setup.py", 2) == "."
        assert directory_key("src/services/api/routes.py", 0) == "."

    def test_affinity_key_combines_directory_and_language(self):
        assert affinity_key("src/services/api/routes.py", 2) == "src/services [python]"


class TestGroupFiles:
    """Tests for group_files."""

    def test_related_files_grouped_together(self, make_file):
        files = [
            budgeted(make_file, "src/api/a.py", 10),
            budgeted(make_file, "web/app.ts", 10),
            budgeted(make_file, "src/api/b.py", 10),
        ]

        groups = group_files(files, max_group_chars=1_000, max_group_files=5)

        assert [g.filenames for g in groups] == [["src/api/a.py", "src/api/b.py"], ["web/app.ts"]]
        assert groups[0].key == "src/api [python]"
        assert groups[0].total_chars == 20

    def test_split_on_file_count(self, make_file):
        files = [budgeted(make_file, f"pkg/f{i}.py", 1) for i in range(5)]

        groups = group_files(files, max_group_chars=1_000, max_group_files=2)

        assert [len(g.files) for g in groups] == [2, 2, 1]

    def test_split_on_cumulative_chars(self, make_file):
        files = [budgeted(make_file, f"pkg/f{i}.py", 40) for i in range(4)]

        groups = group_files(files, max_group_chars=100, max_group_files=10)

        assert [g.total_chars for g in groups] == [80, 80]
        assert all(g.total_chars <= 100 for g in groups)

    def test_oversized_file_forms_singleton(self, make_file):
        files = [
            budgeted(make_file, "pkg/small1.py", 10),
            budgeted(make_file, "pkg/huge.py", 500),
            budgeted(make_file, "pkg/small2.py", 10),
        ]

        groups = group_files(files, max_group_chars=100, max_group_files=10)

        assert [g.filenames for g in groups] == [["pkg/small1.py"], ["pkg/huge.py"], ["pkg/small2.py"]]
        assert groups[1].total_chars == 500

    def test_files_without_patch_still_grouped(self, make_file):
        files = [budget_patch(make_file("assets/font.bin", patch=None), 100)]

        groups = group_files(files, max_group_chars=100, max_group_files=10)

        assert [g.filenames for g in groups] == [["assets/font.bin"]]
        assert groups[0].total_chars == 0

    def test_conservation_and_bounds(self, make_file):
        sizes = [5, 70, 120, 33, 1, 99, 64, 250, 12, 48, 77, 3]
        dirs = ["src/a", "src/b", "lib", "src/a/deep", "tests"]
        files = [
            budgeted(make_file, f"{dirs[i % len(dirs)]}/m{i}.{'py' if i % 2 else 'ts'}", size)
            for i, size in enumerate(sizes)
        ]

        groups = group_files(files, max_group_chars=150, max_group_files=3)

        grouped = [name for g in groups for name in g.filenames]
        assert sorted(grouped) == sorted(f.filename for f in files)
        assert len(grouped) == len(set(grouped))
        for g in groups:
            assert len(g.files) <= 3
            assert g.total_chars == sum(f.diff_size for f in g.files)
            assert g.total_chars <= 150 or len(g.files) == 1

    def test_deterministic(self, make_file):
        files = [budgeted(make_file, f"d{i % 4}/f{i}.py", (i * 37) % 90) for i in range(30)]

        first = group_files(files, max_group_chars=120, max_group_files=4)
        second = group_files(list(files), max_group_chars=120, max_group_files=4)

        assert first == second

    def test_empty(self):
        assert group_files([], max_group_chars=100, max_group_files=5) == []


class TestPaginateFiles:
    """Tests for paging through reviewable files."""

    def test_first_page(self, make_file):
        files = [make_file(f"src/f{i}.py") for i in range(5)]

        page = paginate_files(files, total_files=7, page=1, per_page=2, max_patch_chars=1_000)

        assert [f.filename for f in page.files] == ["src/f0.py", "src/f1.py"]
        assert page.total_files == 7
        assert page.reviewable_count == 2
        assert page.has_more is True
        assert page.page == 1

    def test_last_page(self, make_file):
        files = [make_file(f"src/f{i}.py") for i in range(5)]

        page = paginate_files(files, total_files=5, page=3, per_page=2, max_patch_chars=1_000)

        assert [f.filename for f in page.files] == ["src/f4.py"]
        assert page.has_more is False

    def test_page_past_end_is_empty(self, make_file):
        files = [make_file("src/a.py")]

        page = paginate_files(files, total_files=1, page=4, per_page=2, max_patch_chars=1_000)

        assert page.files == []
        assert page.has_more is False

    def test_patches_are_budgeted(self, make_file):
        files = [make_file("src/big.py", patch="+" * 5_000)]

        page = paginate_files(files, total_files=1, page=1, per_page=30, max_patch_chars=1_000)

        assert len(page.files[0].patch) == 1_000

    def test_invalid_page(self, make_file):
        with pytest.raises(InvalidInputError):
            paginate_files([], total_files=0, page=0, per_page=30, max_patch_chars=1_000)
