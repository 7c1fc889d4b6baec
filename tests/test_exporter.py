"""End-to-end export of workbooks built on the fly."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from openpyxl import Workbook

from gamedata_export.errors import CoercionError, MalformedHeaderError, ResourceError
from gamedata_export.exporter import export_schema, export_table, marker_name
from gamedata_export.models import ExportConfig, Schema, Table

ITEM = Table("Item", frozenset({"Id", "Name", "Price"}))
ITEM_HEADER = ["Id:string", "Name:string", "Price:float"]


@pytest.fixture
def config(tmp_path: Path) -> ExportConfig:
    return ExportConfig(
        schema_dir=tmp_path / "schema", excel_dir=tmp_path / "excel", json_dir=tmp_path / "json"
    )


def _read_output(config: ExportConfig, table: Table) -> object:
    return json.loads(config.output_path(table).read_text(encoding="utf-8"))


def test_marker_name() -> None:
    assert marker_name(ITEM) == "Item.json"


def test_scenario_a_single_record(config: ExportConfig, make_workbook: Callable[..., Path]) -> None:
    make_workbook("Item", {"Items": [["Item.json"], ITEM_HEADER, ["I001", "Sword", 12.5]]})

    report = export_table(ITEM, config)

    assert config.output_path(ITEM).name == "GameDataItem.json"
    assert _read_output(config, ITEM) == {"I001": {"Name": "Sword", "Price": 12.5}}
    assert report.sheet == "Items"
    assert (report.rows_in, report.records_out, report.dropped_rows) == (1, 1, 0)
    assert report.warnings == []


def test_scenario_b_empty_id_row_is_dropped(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    make_workbook(
        "Item",
        {"Items": [["Item.json"], ITEM_HEADER, [None, "Nameless", 1.0], ["I002", "Bow", 3]]},
    )

    report = export_table(ITEM, config)

    assert _read_output(config, ITEM) == {"I002": {"Name": "Bow", "Price": 3.0}}
    assert report.dropped_rows == 1


def test_scenario_c_array_column_is_spliced(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    table = Table("Item", frozenset({"Id", "Tags"}))
    make_workbook(
        "Item",
        {"Items": [["Item.json"], ["Id:string", "Tags:string:array"], ["I001", '["a","b"]']]},
    )

    export_table(table, config)

    assert _read_output(config, table) == {"I001": {"Tags": ["a", "b"]}}


def test_scenario_d_no_matching_sheet_writes_empty_object(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    make_workbook(
        "Item",
        {
            "Notes": [["design notes"], ITEM_HEADER, ["I001", "Sword", 12.5]],
            "Old": [["Weapon.json"], ITEM_HEADER, ["I002", "Axe", 1]],
        },
    )

    report = export_table(ITEM, config)

    assert config.output_path(ITEM).read_text(encoding="utf-8") == "{}\n"
    assert report.sheet == ""
    assert "No sheet in Item.xlsx is marked 'Item.json'" in report.warnings[0]


def test_scenario_e_coercion_error_leaves_no_output(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    table = Table("Monster", frozenset({"Id", "Hp"}))
    make_workbook(
        "Monster",
        {"Monsters": [["Monster.json"], ["Id:string", "Hp:int"], ["M01", 10], ["M02", "tough"]]},
    )

    with pytest.raises(CoercionError, match="Monsters!B4"):
        export_table(table, config)

    assert not config.output_path(table).exists()
    assert list(Path(config.json_dir).glob("*")) == []


def test_failed_export_keeps_previous_output(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    output = config.output_path(ITEM)
    output.parent.mkdir(parents=True)
    output.write_text('{"old": {}}\n', encoding="utf-8")
    make_workbook("Item", {"Items": [["Item.json"], ITEM_HEADER, ["I001", "Sword", "cheap"]]})

    with pytest.raises(CoercionError):
        export_table(ITEM, config)

    assert output.read_text(encoding="utf-8") == '{"old": {}}\n'


def test_only_the_marked_sheet_is_exported(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    make_workbook(
        "Item",
        {
            "Scratch": [["whatever"], ["broken header"], ["x"]],
            "Items": [["Item.json"], ITEM_HEADER, ["I001", "Sword", 12.5]],
        },
    )

    export_table(ITEM, config)

    assert _read_output(config, ITEM) == {"I001": {"Name": "Sword", "Price": 12.5}}


def test_first_marked_sheet_wins(config: ExportConfig, make_workbook: Callable[..., Path]) -> None:
    make_workbook(
        "Item",
        {
            "A": [["Item.json"], ITEM_HEADER, ["I001", "Sword", 1]],
            "B": [["Item.json"], ITEM_HEADER, ["I002", "Bow", 2]],
        },
    )

    report = export_table(ITEM, config)

    assert _read_output(config, ITEM) == {"I001": {"Name": "Sword", "Price": 1.0}}
    assert any("ignored 'B'" in w for w in report.warnings)


def test_header_error_is_fatal(config: ExportConfig, make_workbook: Callable[..., Path]) -> None:
    make_workbook("Item", {"Items": [["Item.json"], ["Id:string", "Name"], ["I001", "Sword"]]})

    with pytest.raises(MalformedHeaderError, match="Items!B2"):
        export_table(ITEM, config)
    assert not config.output_path(ITEM).exists()


def test_missing_workbook_is_resource_error(config: ExportConfig) -> None:
    with pytest.raises(ResourceError, match="Workbook not found"):
        export_table(ITEM, config)


def test_used_range_may_start_away_from_a1(config: ExportConfig) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = "Items"
    ws.cell(row=2, column=2, value="Item.json")
    for offset, (header, value) in enumerate(zip(ITEM_HEADER, ["I001", "Sword", 12.5])):
        ws.cell(row=3, column=2 + offset, value=header)
        ws.cell(row=4, column=2 + offset, value=value)
    Path(config.excel_dir).mkdir(parents=True)
    wb.save(config.workbook_path(ITEM))

    export_table(ITEM, config)

    assert _read_output(config, ITEM) == {"I001": {"Name": "Sword", "Price": 12.5}}


def test_schema_columns_absent_from_header_are_reported(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    table = Table("Item", frozenset({"Id", "Name", "Weight"}))
    make_workbook("Item", {"Items": [["Item.json"], ITEM_HEADER, ["I001", "Sword", 12.5]]})

    report = export_table(table, config)

    assert _read_output(config, table) == {"I001": {"Name": "Sword"}}
    assert any("Weight" in w for w in report.warnings)


def test_id_not_first_selected_column_is_reported(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    make_workbook(
        "Item",
        {"Items": [["Item.json"], ["Name:string", "Id:string", "Price:float"], ["Sword", "I001", 2]]},
    )

    report = export_table(ITEM, config)

    assert _read_output(config, ITEM) == {"I001": {"Price": 2.0}}
    assert any("never exported: Name" in w for w in report.warnings)


def test_duplicate_ids_are_reported(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    make_workbook(
        "Item",
        {"Items": [["Item.json"], ITEM_HEADER, ["I001", "Sword", 1], ["I001", "Sword+1", 2]]},
    )

    report = export_table(ITEM, config)

    assert report.records_out == 2
    assert any("Duplicate Id values" in w and "I001" in w for w in report.warnings)


def test_dry_run_writes_nothing(tmp_path: Path, make_workbook: Callable[..., Path]) -> None:
    config = ExportConfig(excel_dir=tmp_path / "excel", json_dir=tmp_path / "json", dry_run=True)
    make_workbook("Item", {"Items": [["Item.json"], ITEM_HEADER, ["I001", "Sword", 12.5]]})

    report = export_table(ITEM, config)

    assert report.records_out == 1
    assert report.output == ""
    assert not (tmp_path / "json").exists()


def test_export_schema_runs_tables_in_order_and_stops_on_error(
    config: ExportConfig, make_workbook: Callable[..., Path]
) -> None:
    monster = Table("Monster", frozenset({"Id", "Hp"}))
    make_workbook("Item", {"Items": [["Item.json"], ITEM_HEADER, ["I001", "Sword", 12.5]]})
    make_workbook("Monster", {"M": [["Monster.json"], ["Id:string", "Hp:int"], ["M01", "x"]]})
    started: list[str] = []
    finished: list[str] = []

    with pytest.raises(CoercionError):
        export_schema(
            Schema((ITEM, monster)),
            config,
            on_table=lambda t: started.append(t.name),
            on_report=lambda r: finished.append(r.table),
        )

    assert started == ["Item", "Monster"]
    assert finished == ["Item"]
    assert config.output_path(ITEM).exists()
    assert not config.output_path(monster).exists()
