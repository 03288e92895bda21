"""Tests for the correction table."""
import json

from booklib.corrections import load_corrections


def test_bundled_corrections():
    """Test the curated table shipped with the package."""
    table = load_corrections()
    
    assert len(table) == 8
    correction = table["/works/OL1184991W"]
    assert correction.publishers == ["Harper & Row"]
    assert correction.publish_date == "1956"
    assert correction.number_of_pages == 133


def test_custom_corrections_file(tmp_path):
    """Test that the table can be extended without code changes."""
    path = tmp_path / "corrections.json"
    path.write_text(json.dumps({
        "/works/OL9W": {"publishers": ["Local Press"], "publish_date": 1999},
    }))
    
    table = load_corrections(path)
    
    assert list(table) == ["/works/OL9W"]
    assert table["/works/OL9W"].publishers == ["Local Press"]
    assert table["/works/OL9W"].publish_date == "1999"
    assert table["/works/OL9W"].number_of_pages is None


def test_unusable_corrections_file(tmp_path):
    """Test that missing or malformed files give an empty table."""
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    listing = tmp_path / "list.json"
    listing.write_text("[]")
    
    assert load_corrections(tmp_path / "missing.json") == {}
    assert load_corrections(broken) == {}
    assert load_corrections(listing) == {}
