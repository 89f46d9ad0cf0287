import dataclasses
import json

import pytest

from scanql.sql import ColumnDesc, FilterDesc, QueryDescription


def test_empty_description():
    query = QueryDescription()

    assert query.to_dict() == {}
    assert str(query) == "{}"


def test_to_dict_omits_empty_fields():
    query = QueryDescription(
        columns=(ColumnDesc("*"),),
        filters=(FilterDesc("age", ">=", 18),),
        limit=10,
    )

    assert query.to_dict() == {
        "columns": [{"name": "*"}],
        "filters": [{"column": "age", "operator": ">=", "value": 18}],
        "limit": 10,
    }


def test_to_dict_all_fields():
    query = QueryDescription(
        columns=(ColumnDesc("id", "count"), ColumnDesc("country")),
        group_by=(ColumnDesc("country"),),
        order_by=(ColumnDesc("country"),),
        descending=True,
    )

    assert query.to_dict() == {
        "columns": [{"name": "id", "aggregate": "count"}, {"name": "country"}],
        "group_by": [{"name": "country"}],
        "order_by": [{"name": "country"}],
        "descending": True,
    }


def test_str_is_json():
    query = QueryDescription(filters=(FilterDesc("name", "matches", "Jo"),))
    assert json.loads(str(query)) == query.to_dict()


def test_descriptions_are_immutable():
    query = QueryDescription()
    with pytest.raises(dataclasses.FrozenInstanceError):
        query.limit = 5


def test_descriptions_are_hashable():
    assert len({QueryDescription(limit=1), QueryDescription(limit=1)}) == 1
