"""Tests for stage definitions and pipeline rendering."""

import pytest

from mongo_aggregator.pipeline.stages import (
    AddFields,
    Count,
    Facet,
    Group,
    Limit,
    Lookup,
    Match,
    PipelineStage,
    Project,
    Skip,
    Sort,
    StageKind,
    Unwind,
    render_pipeline,
)


class TestStageRendering:
    """Test single-key wire rendering of each stage."""

    @pytest.mark.parametrize(
        "stage, expected",
        [
            (Match({"age": {"$gte": 30}}), {"$match": {"age": {"$gte": 30}}}),
            (
                Group({"_id": "$country", "count": {"$sum": 1}}),
                {"$group": {"_id": "$country", "count": {"$sum": 1}}},
            ),
            (Sort({"count": -1}), {"$sort": {"count": -1}}),
            (Project({"_id": 0, "name": 1}), {"$project": {"_id": 0, "name": 1}}),
            (Unwind("$orders"), {"$unwind": "$orders"}),
            (
                AddFields({"double": {"$multiply": ["$age", 2]}}),
                {"$addFields": {"double": {"$multiply": ["$age", 2]}}},
            ),
            (Skip(20), {"$skip": 20}),
            (Limit(5), {"$limit": 5}),
            (Count("n"), {"$count": "n"}),
        ],
    )
    def test_render(self, stage, expected):
        """Test each stage renders to its operator key."""
        assert stage.render() == expected

    def test_lookup_uses_wire_field_names(self):
        """Test lookup renders from/localField/foreignField/as."""
        stage = Lookup("orders", "name", "customer", "orders")

        assert stage.render() == {
            "$lookup": {
                "from": "orders",
                "localField": "name",
                "foreignField": "customer",
                "as": "orders",
            }
        }

    def test_facet_renders_sub_pipelines_as_lists(self):
        """Test facet sub-pipelines are rendered as lists in their original order."""
        stage = Facet({"total": ({"$count": "n"},), "page": [{"$skip": 0}, {"$limit": 2}]})

        assert stage.render() == {
            "$facet": {
                "total": [{"$count": "n"}],
                "page": [{"$skip": 0}, {"$limit": 2}],
            }
        }

    def test_unwind_accepts_options_mapping(self):
        """Test unwind passes an options document through."""
        options = {"path": "$orders", "preserveNullAndEmptyArrays": True}
        assert Unwind(options).render() == {"$unwind": options}

    def test_expressions_are_passed_through_by_reference(self):
        """Test conditions are not copied or rewritten."""
        condition = {"status": {"$in": ["a", "b"]}}
        assert Match(condition).render()["$match"] is condition

    def test_unvalidated_pagination_values(self):
        """Test negative and non-integer values are kept as given."""
        assert Skip(-1).render() == {"$skip": -1}
        assert Limit("ten").render() == {"$limit": "ten"}

    def test_kind_matches_wire_key(self):
        """Test every stage kind is an operator name."""
        assert all(kind.value.startswith("$") for kind in StageKind)
        assert Match({}).kind is StageKind.MATCH
        assert AddFields({}).kind.value == "$addFields"

    def test_base_stage_is_abstract(self):
        """Test the base class cannot be instantiated."""
        with pytest.raises(TypeError):
            PipelineStage()

    def test_facet_keeps_non_list_values(self):
        """Test facet values that are not stage lists are rendered as given."""
        assert Facet({"bad": 5, "name": "total"}).render() == {
            "$facet": {"bad": 5, "name": "total"}
        }


class TestRenderPipeline:
    """Test rendering of whole pipelines."""

    def test_empty_pipeline(self):
        """Test empty input renders to an empty list."""
        assert render_pipeline([]) == []

    def test_preserves_order(self):
        """Test stages render in the order given."""
        stages = [Sort({"a": 1}), Match({"b": 2}), Skip(1), Limit(1), Count("c")]

        rendered = render_pipeline(stages)

        assert [next(iter(entry)) for entry in rendered] == [
            "$sort",
            "$match",
            "$skip",
            "$limit",
            "$count",
        ]

    def test_returns_new_list(self):
        """Test each call builds a fresh list."""
        stages = [Limit(1)]
        first = render_pipeline(stages)
        first.append({"$skip": 3})

        assert render_pipeline(stages) == [{"$limit": 1}]

    def test_rejects_non_stage_items(self):
        """Test beartype rejects items that are not stages."""
        # NOTE: beartype raises its own violation type
        with pytest.raises(Exception):
            render_pipeline([{"$match": {}}])
