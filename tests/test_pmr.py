from __future__ import annotations

import pandas as pd
import pytest

from site_tracker.models.entities import MainInventory
from site_tracker.services import files as files_service
from site_tracker.services.inventory import next_sheet_source
from site_tracker.services.pmr_import import build_preview, extract_pmr_rows
from site_tracker.services.pmr_status import category_completion, count_duplicate_values, requires_tag_photo


def test_extract_rows_formats_spreadsheet_cells() -> None:
    frame = pd.DataFrame(
        {
            "Site_ID_1": ["W2470", ""],
            "Site_ID": [2470.0, None],
            "Autual_PMR_Date": [pd.Timestamp("2026-01-15"), pd.NaT],
            "FME Name": ["Ali", None],
            "Unmapped": ["x", "y"],
        }
    )
    rows = extract_pmr_rows(frame)
    assert rows == [
        {"Site_ID_1": "W2470", "Site_ID": "2470", "Autual_PMR_Date": "15-Jan-26", "FME Name": "Ali"},
    ]
    preview = build_preview(rows)
    assert preview.total_rows == 1
    assert preview.columns == ["Site_ID_1", "Site_ID", "Autual_PMR_Date", "FME Name"]


def test_extract_rows_requires_columns_and_data() -> None:
    with pytest.raises(ValueError, match="Site_ID_1"):
        extract_pmr_rows(pd.DataFrame({"Site_ID": ["2470"]}))
    empty = pd.DataFrame({"Site_ID_1": [""], "Site_ID": [""], "Autual_PMR_Date": [""], "FME Name": [""]})
    with pytest.raises(ValueError, match="no valid data rows"):
        extract_pmr_rows(empty)


def test_duplicate_count_includes_every_instance() -> None:
    assert count_duplicate_values(["A", "A", "B", None, "", " ", "B", "C"]) == 4
    assert count_duplicate_values(["A", "B"]) == 0


def test_tag_photo_exemptions() -> None:
    assert requires_tag_photo(MainInventory(tag_category="Tag available", photo_category="Photos available"))
    assert not requires_tag_photo(MainInventory(tag_category="Tag Not Required", photo_category=None))
    assert not requires_tag_photo(MainInventory(tag_category=None, photo_category="Photos not allowed"))


def test_sheet_source_transitions() -> None:
    assert next_sheet_source("Manual_added", None) == "Manual_added"
    assert next_sheet_source("Manual_verified", None) == "Manual_edited"
    assert next_sheet_source(None, None) == "Manual_edited"
    assert next_sheet_source("Manual_added", "Photos available") == "Manual_verified"


def test_storage_paths_cannot_escape_root() -> None:
    with pytest.raises(ValueError):
        files_service.resolve_storage_path("../outside.png")
    assert files_service.key_from_url("/files/sites/W1/abc/tag.png") == "sites/W1/abc/tag.png"
    assert files_service.key_from_url("https://cdn.example.com/sites/W1/abc/tag.png") is None


def test_category_completion_counts_only_dashboard_categories() -> None:
    rows = [
        MainInventory(category="RAN-Active", tag_category="Tag available", photo_category="Photos available"),
        MainInventory(category="RAN-Active", tag_category="Tag available", photo_category=" "),
        MainInventory(category="MW-Passive"),
        MainInventory(category="Power"),
    ]
    counts = category_completion(rows)
    assert list(counts) == [
        "Enclosure-Active",
        "Enclosure-Passive",
        "RAN-Active",
        "RAN-Passive",
        "MW-Active",
        "MW-Passive",
    ]
    assert (counts["RAN-Active"].total, counts["RAN-Active"].filled) == (2, 1)
    assert (counts["MW-Passive"].total, counts["MW-Passive"].filled) == (1, 0)
    assert sum(entry.total for entry in counts.values()) == 3
