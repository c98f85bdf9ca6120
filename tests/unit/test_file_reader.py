"""
Unit tests for wage file discovery and reading.
"""

import pytest

from wage_pipeline.core.errors import MalformedPayload
from wage_pipeline.core.models import Partition
from wage_pipeline.normalizer import discover_wage_files, partition_from_path, read_wage_file


@pytest.mark.unit
class TestPartitionFromPath:
    """Tests for partition derivation from file paths"""

    def test_standard_layout(self):
        assert partition_from_path("data/ucla/wages_2023.json") == Partition(location="ucla", year=2023)

    @pytest.mark.parametrize("path", [
        "data/ucla/wages.json",
        "data/ucla/wages_23.json",
        "data/ucla/salaries_2023.json",
        "data/ucla/wages_2023.csv",
    ])
    def test_other_names_do_not_match(self, path):
        assert partition_from_path(path) is None


@pytest.mark.unit
class TestDiscoverWageFiles:
    """Tests for data directory walking"""

    def test_finds_files_sorted(self, wage_data_dir):
        files = discover_wage_files(wage_data_dir)

        assert [f.partition for f in files] == [
            Partition(location="ucla", year=2022),
            Partition(location="ucla", year=2023),
        ]
        assert all(f.path.exists() for f in files)

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            discover_wage_files(tmp_path / "nope")


@pytest.mark.unit
class TestReadWageFile:
    """Tests for reading a single wage file"""

    def test_reads_payload(self, wage_data_dir):
        payload = read_wage_file(wage_data_dir / "ucla" / "wages_2023.json")

        assert payload["location"] == "ucla"
        assert len(payload["records"]) == 4

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_wage_file(tmp_path / "wages_2023.json")

    def test_corrupt_file_is_malformed(self, tmp_path):
        path = tmp_path / "wages_2023.json"
        path.write_text('{"location": "ucla", "records": [')

        with pytest.raises(MalformedPayload) as exc_info:
            read_wage_file(path)

        assert str(path) in str(exc_info.value)
