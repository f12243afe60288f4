"""Tests for the schema unifier."""

import pytest

from tablesmith.dataset import Dataset, Row, SourceFile
from tablesmith.importer import SchemaUnifier
from tablesmith.schema import (
    ColumnType,
    MatchKind,
    UnificationClosedError,
    UnifierStatus,
    UnknownColumnError,
    infer_column_types,
)


@pytest.fixture
def existing_dataset() -> Dataset:
    """Dataset with Name and Email columns."""
    source = SourceFile(id="file-1", name="people.csv", headers=["Name", "Email"])
    return Dataset(
        headers=["Name", "Email"],
        rows=[
            Row(rid="r1", values={"Name": "Alice", "Email": "a@x.io"}, file_id="file-1"),
            Row(rid="r2", values={"Name": "Bob", "Email": "b@x.io"}, file_id="file-1"),
        ],
        files=[source],
        column_types={"Name": ColumnType.TEXT, "Email": ColumnType.TEXT},
    )


@pytest.fixture
def incoming(make_parsed):
    """Incoming file with renamed and new columns."""
    return make_parsed(
        "more.csv",
        ["name", "email_address", "age"],
        [
            {"name": "Cara", "email_address": "c@x.io", "age": "31"},
            {"name": "Dan", "email_address": "d@x.io", "age": "45"},
        ],
        warnings=["Warning: trailing delimiter"],
    )


class TestProposal:
    """Test the default proposal."""

    def test_default_mappings(self, existing_dataset, incoming):
        """Test mapping suggestions for every source column."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])

        assert unifier.status == UnifierStatus.PROPOSED
        assert list(unifier.mappings) == ["name", "email_address", "age"]

        name = unifier.mappings["name"]
        assert name.target_column == "Name"
        assert name.match_kind == MatchKind.CASE_INSENSITIVE

        email = unifier.mappings["email_address"]
        assert email.target_column == "Email"
        assert email.match_kind == MatchKind.FUZZY
        assert email.confidence >= 0.6

        age = unifier.mappings["age"]
        assert age.target_column is None
        assert age.match_kind is None
        assert age.confidence == 0.0

    def test_default_order(self, existing_dataset, incoming):
        """Test mapped existing, unmapped existing, then new columns."""
        unifier = SchemaUnifier(["Phone", "Name", "Email"], [incoming])

        assert unifier.final_column_order == ["Name", "Email", "Phone", "age"]

    def test_default_types_from_pooled_samples(self, existing_dataset, incoming):
        """Test types inferred over mapped sample rows."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])

        assert unifier.final_column_types == {
            "Name": ColumnType.TEXT,
            "Email": ColumnType.TEXT,
            "age": ColumnType.NUMBER,
        }
        assert unifier.mappings["age"].target_type == ColumnType.NUMBER

    def test_mapped_column_types_use_source_values(self, make_parsed):
        """Test that a mapped column is typed from the incoming values."""
        parsed = make_parsed("b.csv", ["Amount"], [{"Amount": "5"}, {"Amount": "7"}])
        unifier = SchemaUnifier(["amount", "note"], [parsed])

        assert unifier.mappings["Amount"].target_column == "amount"
        assert unifier.final_column_types["amount"] == ColumnType.NUMBER
        assert unifier.final_column_types["note"] == ColumnType.TEXT

    def test_only_first_rows_per_file_are_sampled(self, make_parsed):
        """Test the per-file sample limit."""
        rows = [{"code": "x"}] * 5 + [{"code": "1"}] * 50
        parsed = make_parsed("c.csv", ["code"], rows)
        unifier = SchemaUnifier(["other"], [parsed], sample_rows_per_file=5)

        assert unifier.final_column_types["code"] == ColumnType.TEXT

    def test_unmapped_existing_columns_keep_their_type(self, make_parsed):
        """Test that an existing column with no incoming source keeps its type."""
        parsed = make_parsed("b.csv", ["Name", "Note"], [{"Name": "Cy", "Note": "hi"}])
        unifier = SchemaUnifier(
            ["Name", "Amount"],
            [parsed],
            existing_types={"Name": ColumnType.TEXT, "Amount": ColumnType.NUMBER},
        )

        assert unifier.final_column_types["Amount"] == ColumnType.NUMBER
        assert unifier.final_column_types["Note"] == ColumnType.TEXT

    def test_mapped_existing_column_ignores_existing_type(self, make_parsed):
        """Test that a mapped column is still typed from the incoming values."""
        parsed = make_parsed("b.csv", ["amount"], [{"amount": "n/a"}, {"amount": "none"}])
        unifier = SchemaUnifier(
            ["Amount", "Note"],
            [parsed],
            existing_types={"Amount": ColumnType.NUMBER, "Note": ColumnType.TEXT},
        )

        assert unifier.mappings["amount"].target_column == "Amount"
        assert unifier.final_column_types["Amount"] == ColumnType.TEXT

    def test_thresholds_are_applied(self, make_parsed):
        """Test that the numeric thresholds reach type inference."""
        rows = [{"misc": "x"}] + [{"misc": str(i)} for i in range(4)]
        parsed = make_parsed("m.csv", ["misc"], rows)

        default = SchemaUnifier(["other"], [parsed])
        strict = SchemaUnifier(
            ["other"], [parsed], numeric_threshold=0.99, heuristic_threshold=0.99
        )

        assert default.final_column_types["misc"] == ColumnType.NUMBER
        assert strict.final_column_types["misc"] == ColumnType.TEXT

    def test_source_columns_union_in_first_appearance_order(self, make_parsed):
        """Test headers collected across several files."""
        first = make_parsed("1.csv", ["b", "a"], [])
        second = make_parsed("2.csv", ["a", "c"], [])
        unifier = SchemaUnifier(["x"], [first, second])

        assert unifier.source_columns == ["b", "a", "c"]

    def test_summary(self, existing_dataset, incoming):
        """Test summary counts."""
        summary = SchemaUnifier(existing_dataset.headers, [incoming]).summary()

        assert summary.total_new_columns == 3
        assert summary.mapped_to_existing == 2
        assert summary.new_columns_created == 1
        assert summary.final_column_count == 3


class TestEdits:
    """Test editing the proposal."""

    def test_set_mapping_target_to_new_column(self, existing_dataset, incoming):
        """Test switching a mapping to create a new column."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.set_mapping_target("email_address", None)

        mapping = unifier.mappings["email_address"]
        assert mapping.target_column is None
        assert mapping.match_kind == MatchKind.MANUAL
        assert unifier.status == UnifierStatus.EDITED
        assert unifier.final_column_order == ["Name", "Email", "email_address", "age"]
        assert unifier.final_column_types["email_address"] == ColumnType.TEXT

    def test_set_mapping_target_to_existing_column(self, existing_dataset, incoming):
        """Test pointing a new column at an existing column."""
        unifier = SchemaUnifier(["Name", "Email", "Years"], [incoming])
        unifier.set_mapping_target("age", "Years")

        assert unifier.mappings["age"].target_column == "Years"
        assert unifier.mappings["age"].match_kind == MatchKind.MANUAL
        assert unifier.final_column_order == ["Name", "Email", "Years"]

    def test_set_mapping_target_unknown_columns(self, existing_dataset, incoming):
        """Test that unknown source or target columns are rejected."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])

        with pytest.raises(UnknownColumnError):
            unifier.set_mapping_target("missing", None)
        with pytest.raises(UnknownColumnError):
            unifier.set_mapping_target("age", "Missing")

    def test_set_column_type(self, existing_dataset, incoming):
        """Test changing a final column type."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.set_column_type("age", ColumnType.TEXT)

        assert unifier.final_column_types["age"] == ColumnType.TEXT
        assert unifier.mappings["age"].target_type == ColumnType.TEXT
        assert unifier.status == UnifierStatus.EDITED

        with pytest.raises(UnknownColumnError):
            unifier.set_column_type("nope", ColumnType.TEXT)

    def test_set_final_column_order(self, existing_dataset, incoming):
        """Test replacing the column order."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.set_final_column_order(["age", "Email", "Name"])

        assert unifier.final_column_order == ["age", "Email", "Name"]

    @pytest.mark.parametrize(
        "order",
        [["age", "Email"], ["age", "Email", "Name", "Name"], ["age", "Email", "Other"]],
    )
    def test_set_final_column_order_requires_permutation(self, existing_dataset, incoming, order):
        """Test that the order must contain every final column once."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])

        with pytest.raises(ValueError):
            unifier.set_final_column_order(order)

    def test_manual_order_survives_mapping_edits(self, existing_dataset, incoming):
        """Test that mapping edits keep a manual order and append new columns."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.set_final_column_order(["age", "Email", "Name"])
        unifier.set_mapping_target("email_address", None)

        assert unifier.final_column_order == ["age", "Email", "Name", "email_address"]

    def test_reset_discards_edits(self, existing_dataset, incoming):
        """Test that reset recomputes everything."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.set_mapping_target("name", None)
        unifier.set_column_type("age", ColumnType.TEXT)
        unifier.set_final_column_order(list(reversed(unifier.final_column_order)))

        unifier.reset()

        assert unifier.status == UnifierStatus.PROPOSED
        assert unifier.mappings["name"].target_column == "Name"
        assert unifier.mappings["name"].match_kind == MatchKind.CASE_INSENSITIVE
        assert unifier.final_column_types["age"] == ColumnType.NUMBER
        assert unifier.final_column_order == ["Name", "Email", "age"]


class TestLifecycle:
    """Test commit and cancel."""

    def test_commit_without_edits_keeps_two_columns(self, existing_dataset, make_parsed):
        """Test that a renamed schema unifies onto the existing columns."""
        parsed = make_parsed(
            "renamed.csv",
            ["name", "email_address"],
            [{"name": "Cara", "email_address": "c@x.io"}],
        )
        unifier = SchemaUnifier(existing_dataset.headers, [parsed])

        result = unifier.commit(existing_dataset)

        assert result.headers == ["Name", "Email"]
        assert len(result.rows) == 3
        assert result.rows[-1].values == {"Name": "Cara", "Email": "c@x.io"}
        assert unifier.status == UnifierStatus.COMMITTED

    def test_commit_extends_existing_rows(self, existing_dataset, incoming):
        """Test that existing rows gain empty cells for new columns."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        result = unifier.commit(existing_dataset)

        assert result.headers == ["Name", "Email", "age"]
        assert [row.rid for row in result.rows[:2]] == ["r1", "r2"]
        assert result.rows[0].values == {"Name": "Alice", "Email": "a@x.io", "age": ""}
        assert result.rows[2].values == {"Name": "Cara", "Email": "c@x.io", "age": "31"}
        assert result.column_types["age"] == ColumnType.NUMBER

    def test_commit_tags_rows_with_new_file(self, existing_dataset, incoming):
        """Test provenance of committed rows and the merged manifest."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        result = unifier.commit(existing_dataset)

        assert [f.name for f in result.files] == ["people.csv", "more.csv"]
        new_file = result.files[-1]
        assert new_file.id != "file-1"
        assert all(row.file_id == new_file.id for row in result.rows[2:])
        assert all(row.file_name == "more.csv" for row in result.rows[2:])
        assert result.warnings == ["Warning: trailing delimiter"]

    def test_commit_leaves_dataset_unchanged(self, existing_dataset, incoming):
        """Test that the input dataset is not mutated."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.commit(existing_dataset)

        assert existing_dataset.headers == ["Name", "Email"]
        assert len(existing_dataset.rows) == 2
        assert "age" not in existing_dataset.rows[0].values

    def test_commit_uses_manual_order_and_types(self, existing_dataset, incoming):
        """Test that edits flow into the committed dataset."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.set_final_column_order(["age", "Name", "Email"])
        unifier.set_column_type("age", ColumnType.TEXT)

        result = unifier.commit(existing_dataset)

        assert result.headers == ["age", "Name", "Email"]
        assert result.column_types == {
            "age": ColumnType.TEXT,
            "Name": ColumnType.TEXT,
            "Email": ColumnType.TEXT,
        }

    def test_no_op_unification_matches_uniform_import(self, make_parsed):
        """Test that identical headers unify to the same order and types."""
        headers = ["id", "amount", "label"]
        first = make_parsed("a.csv", headers, [
            {"id": "1", "amount": "9.5", "label": "x"},
            {"id": "2", "amount": "3", "label": "y"},
        ])
        second = make_parsed("b.csv", headers, [
            {"id": "3", "amount": "1,200", "label": "z"},
        ])
        unifier = SchemaUnifier(headers, [first, second])

        result = unifier.commit(Dataset())

        uniform_types = infer_column_types(headers, first.rows + second.rows)
        assert result.headers == headers
        assert result.column_types == uniform_types
        assert all(m.match_kind == MatchKind.EXACT for m in unifier.mappings.values())

    def test_cancel(self, existing_dataset, incoming):
        """Test that a cancelled unification rejects further edits."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.cancel()

        assert unifier.status == UnifierStatus.CANCELLED
        assert unifier.is_open is False
        with pytest.raises(UnificationClosedError):
            unifier.set_column_type("age", ColumnType.TEXT)
        with pytest.raises(UnificationClosedError):
            unifier.commit(existing_dataset)

    def test_commit_twice_fails(self, existing_dataset, incoming):
        """Test that a committed unification is closed."""
        unifier = SchemaUnifier(existing_dataset.headers, [incoming])
        unifier.commit(existing_dataset)

        with pytest.raises(UnificationClosedError):
            unifier.commit(existing_dataset)
        with pytest.raises(UnificationClosedError):
            unifier.reset()
