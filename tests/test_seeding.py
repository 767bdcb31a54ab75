"""Test data seeding utilities."""

import pandas as pd
import pytest

from phoenixduck import seed_table


def test_seed_table_from_dict(client):
    """Test seeding a table from a dict of lists."""
    data = {
        "id": [1, 2, 3],
        "name": ["Alice", "Bob", "Carol"],
        "value": [100, 200, 300],
    }

    rows = seed_table(client, "test_data", data)

    assert rows == 3
    assert client.execute_query("SELECT COUNT(*) AS n FROM test_data").rows == ((3,),)

    results = client.execute_query("SELECT * FROM test_data ORDER BY id").rows
    assert results[0][1] == "Alice"
    assert results[1][2] == 200


def test_seed_table_from_dataframe(client):
    """Test seeding a table from a pandas DataFrame."""
    df = pd.DataFrame(
        {
            "id": [1, 2],
            "name": ["Alice", "Bob"],
            "created": pd.to_datetime(["2024-01-01", "2024-01-02 10:30:00"]),
            "active": [True, False],
            "score": [1.5, None],
        }
    )

    rows = seed_table(client, "users", df)

    assert rows == 2
    records = client.execute_query_as_list("SELECT * FROM users WHERE id = 2")
    assert records[0]["NAME"] == "Bob"
    assert records[0]["CREATED"] == pd.Timestamp("2024-01-02 10:30:00").to_pydatetime()
    assert records[0]["ACTIVE"] is False
    assert records[0]["SCORE"] is None


def test_seed_table_from_list_of_dicts(client):
    """Test seeding from list of dictionaries."""
    data = [
        {"id": 1, "name": "Alice", "score": 95},
        {"id": 2, "name": "O'Brien", "score": 87},
    ]

    rows = seed_table(client, "scores", data)

    assert rows == 2
    table = client.execute_query("SELECT score FROM scores WHERE name = 'O''Brien'")
    assert table.rows == ((87,),)


def test_first_column_is_primary_key(client):
    seed_table(client, "keyed", {"id": [1], "v": ["a"]})

    columns = client.get_columns("KEYED")
    assert columns.rows[0][0] == "ID"
    assert columns.rows[0][3] == "NO"


def test_seed_table_replaces_existing(client):
    seed_table(client, "items", {"id": [1, 2], "v": ["a", "b"]})
    seed_table(client, "items", {"id": [9], "v": ["z"]})

    assert client.execute_query("SELECT id, v FROM items").rows == ((9, "z"),)


def test_seed_table_appends_without_drop(client):
    seed_table(client, "items", {"id": [1], "v": ["a"]})
    seed_table(client, "items", {"id": [2], "v": ["b"]}, drop_if_exists=False)

    assert len(client.execute_query("SELECT * FROM items")) == 2


def test_seed_table_empty_data(client):
    with pytest.raises(ValueError, match="empty"):
        seed_table(client, "nothing", {"id": []})
