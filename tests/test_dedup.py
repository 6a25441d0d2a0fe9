"""Tests for deduplication keys and most-recent merging.

Key behaviors tested:
- crawl_key is exact and date-qualified; establishment_key is normalized
- keep_most_recent keeps the latest inspection per establishment
- facility type is backfilled before replacement, on the kept object
- unparseable dates never replace
- merging a dataset with itself changes nothing
"""

from safeplate.dedup import (
    crawl_key,
    establishment_key,
    keep_most_recent,
    merge_datasets,
)
from tests.utils import make_record


class TestKeys:
    """Tests for the two key functions."""

    def test_crawl_key_is_exact(self) -> None:
        """crawl_key shall keep case, whitespace and the inspection date."""
        record = make_record("Joe's Diner ", "123 Main St", "11/26/2024")

        assert crawl_key(record) == "Joe's Diner |123 Main St|11/26/2024"
        assert crawl_key(make_record("joe's diner ")) != crawl_key(record)

    def test_establishment_key_is_normalized(self) -> None:
        """establishment_key shall lowercase and trim, and ignore the date."""
        a = make_record("  Joe's Diner", "123 MAIN ST ", "01/01/2024")
        b = make_record("joe's diner", "123 main st", "06/01/2024")

        assert establishment_key(a) == "joe's diner|123 main st"
        assert establishment_key(a) == establishment_key(b)


class TestKeepMostRecent:
    """Tests for keep_most_recent()."""

    def test_later_inspection_replaces(self) -> None:
        """The record with the later inspection date shall be kept."""
        older = make_record("Joe's Diner", "123 Main St", "2024-01-01")
        newer = make_record("joe's diner", "123 main st", "2024-06-01")

        result = keep_most_recent([older, newer])

        assert len(result) == 1
        assert result[0] is newer
        assert result[0].inspection_date == "2024-06-01"

    def test_earlier_inspection_does_not_replace(self) -> None:
        newer = make_record(inspection_date="06/01/2024")
        older = make_record(inspection_date="01/01/2024")

        assert keep_most_recent([newer, older]) == [newer]

    def test_same_date_keeps_first(self) -> None:
        first = make_record(inspection_date="06/01/2024", phone="1")
        second = make_record(inspection_date="06/01/2024", phone="2")

        assert keep_most_recent([first, second])[0].phone == "1"

    def test_unparseable_date_never_replaces(self) -> None:
        """A record whose date can't be parsed shall not replace, nor be replaced."""
        dated = make_record(inspection_date="01/01/2024")
        undated = make_record(inspection_date="")
        garbage = make_record(inspection_date="soon")

        assert keep_most_recent([dated, undated, garbage]) == [dated]
        assert keep_most_recent([undated, dated])[0] is undated

    def test_backfill_mutates_kept_record(self) -> None:
        """A missing facility type shall be copied onto the kept record in place."""
        kept = make_record(inspection_date="06/01/2024", facility_type="")
        older = make_record(inspection_date="01/01/2024", facility_type="Fast Food")

        result = keep_most_recent([kept, older])

        assert result == [kept]
        assert kept.facility_type == "Fast Food"

    def test_backfill_does_not_overwrite(self) -> None:
        kept = make_record(inspection_date="06/01/2024", facility_type="School")
        other = make_record(inspection_date="01/01/2024", facility_type="Fast Food")

        keep_most_recent([kept, other])

        assert kept.facility_type == "School"

    def test_replacement_after_backfill(self) -> None:
        """Backfill runs first; a newer record then replaces the kept one wholesale."""
        kept = make_record(inspection_date="01/01/2024", facility_type="")
        newer = make_record(inspection_date="06/01/2024", facility_type="Bakery/Dessert")

        result = keep_most_recent([kept, newer])

        assert kept.facility_type == "Bakery/Dessert"
        assert result == [newer]

    def test_order_follows_first_appearance(self) -> None:
        a1 = make_record("A", inspection_date="01/01/2024")
        b = make_record("B")
        a2 = make_record("A", inspection_date="06/01/2024")

        assert keep_most_recent([a1, b, a2]) == [a2, b]

    def test_empty(self) -> None:
        assert keep_most_recent([]) == []


class TestMergeDatasets:
    """Tests for merge_datasets()."""

    def test_new_run_updates_prior(self) -> None:
        prior = [make_record("A", inspection_date="01/01/2024"), make_record("B")]
        new = [make_record("A", inspection_date="06/01/2024"), make_record("C")]

        merged = merge_datasets(prior, new)

        assert [(r.name, r.inspection_date) for r in merged] == [
            ("A", "06/01/2024"),
            ("B", "11/26/2024"),
            ("C", "11/26/2024"),
        ]

    def test_merge_with_itself_is_identity(self) -> None:
        """Merging a dataset with itself shall yield the same records and values."""
        dataset = [
            make_record("A", inspection_date="01/01/2024", facility_type="School"),
            make_record("B", inspection_date="02/01/2024", facility_type=""),
            make_record("C", inspection_date="", facility_type="Fast Food"),
        ]
        before = [r.to_json_dict() for r in dataset]

        merged = merge_datasets(dataset, dataset)

        assert [r.to_json_dict() for r in merged] == before

    def test_collapses_within_run(self) -> None:
        """Duplicates inside the new run shall collapse even with no prior data."""
        new = [
            make_record("A", inspection_date="01/01/2024"),
            make_record("A", inspection_date="03/01/2024"),
        ]

        merged = merge_datasets([], new)

        assert len(merged) == 1
        assert merged[0].inspection_date == "03/01/2024"
