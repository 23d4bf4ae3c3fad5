from datetime import date

import pandas as pd
import pytest

import import_csv as import_script
from database import CsvFormatError, DailyNumbers, DatabaseConfig, DatabaseManager, StorageWriteError
from database.export import CSV_HEADER, export_csv
from database.importer import INCIDENCE7_HEADER, import_csv

HEADER = ",".join(CSV_HEADER)


def write_csv(path, lines, header=HEADER):
    path.write_text("\n".join([header] + lines) + "\n", encoding="utf-8")
    return path


def open_db(path) -> DatabaseManager:
    return DatabaseManager(DatabaseConfig(sqlite_path=str(path)))


def test_export_then_import_gives_same_records(db_manager, tmp_path):
    csv_path = tmp_path / "numbers.csv"
    export_csv(db_manager, csv_path)

    copy = tmp_path / "copy.db"
    assert import_csv(csv_path, copy) == 8
    with open_db(copy) as db:
        pd.testing.assert_frame_equal(db.records_frame(), db_manager.records_frame())
        assert [e.label for e in db.list_entities()] == [e.label for e in db_manager.list_entities()]
        assert db.list_groups() == db_manager.list_groups()


def test_import_fills_accumulated_columns(tmp_path):
    csv_path = write_csv(
        tmp_path / "in.csv",
        [
            "2020-01-01,1,1,2020,5,0,Xanadu,XX,,1000,Asia,",
            "2020-01-02,2,1,2020,3,1,Xanadu,XX,,1000,Asia,0.5",
        ],
    )
    db_path = tmp_path / "corona.db"
    import_csv(csv_path, db_path)
    with open_db(db_path) as db:
        assert db.ensure_cumulative_columns() == []
        entity = db.list_entities()[0]
        assert db.cumulative_series(entity.id) == [
            DailyNumbers(date(2020, 1, 1), 5, 0),
            DailyNumbers(date(2020, 1, 2), 8, 1),
        ]
        assert [p.incidence for p in db.derived_incidence_series(entity.id)] == [0.5]


def test_ecdc_file_with_seven_day_column(tmp_path):
    csv_path = write_csv(
        tmp_path / "ecdc.csv",
        [
            "14/12/2020,14,12,2020,1,0,Wallis_and_Futuna,WF,,,Oceania,,",
            "13/12/2020,13,12,2020,,,Wallis_and_Futuna,WF,,,Oceania,,",
        ],
        header=HEADER + "," + INCIDENCE7_HEADER,
    )
    db_path = tmp_path / "corona.db"
    assert import_csv(csv_path, db_path) == 2
    with open_db(db_path) as db:
        wf = db.list_entities()[0]
        assert wf.name == "Wallis and Futuna"
        assert wf.population == -1
        assert wf.country_code == ""
        assert db.daily_series(wf.id) == [
            DailyNumbers(date(2020, 12, 13), 0, 0),
            DailyNumbers(date(2020, 12, 14), 1, 0),
        ]


def test_wrong_header_is_rejected(tmp_path):
    csv_path = write_csv(tmp_path / "in.csv", ["1,2,3"], header="a,b,c")
    db_path = tmp_path / "corona.db"
    with pytest.raises(CsvFormatError, match="headers"):
        import_csv(csv_path, db_path)
    assert not db_path.exists()


def test_invalid_numbers_name_the_line(tmp_path):
    csv_path = write_csv(
        tmp_path / "in.csv",
        [
            "2020-01-01,1,1,2020,5,0,Xanadu,XX,,1000,Asia,",
            "2020-01-02,2,1,2020,many,1,Xanadu,XX,,1000,Asia,",
        ],
    )
    with pytest.raises(CsvFormatError, match="line 3"):
        import_csv(csv_path, tmp_path / "corona.db")


def test_duplicate_day_leaves_no_database(tmp_path):
    csv_path = write_csv(
        tmp_path / "in.csv",
        [
            "2020-01-01,1,1,2020,5,0,Xanadu,XX,,1000,Asia,",
            "2020-01-01,1,1,2020,6,0,Xanadu,XX,,1000,Asia,",
        ],
    )
    db_path = tmp_path / "corona.db"
    with pytest.raises(StorageWriteError):
        import_csv(csv_path, db_path)
    assert not db_path.exists()


def test_existing_database_is_not_touched(corona_db, tmp_path):
    csv_path = write_csv(tmp_path / "in.csv", ["2020-01-01,1,1,2020,5,0,Xanadu,XX,,1000,Asia,"])
    before = corona_db.read_bytes()
    with pytest.raises(FileExistsError):
        import_csv(csv_path, corona_db)
    assert corona_db.read_bytes() == before


def test_import_script_exit_codes(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(import_script, "setup_logging", lambda *a, **k: None)
    csv_path = write_csv(tmp_path / "in.csv", ["2020-01-01,1,1,2020,5,0,Xanadu,XX,,1000,Asia,"])
    db_path = tmp_path / "corona.db"
    assert import_script.main([str(csv_path), str(db_path)]) == 0
    assert "successful" in capsys.readouterr().out
    assert import_script.main([str(csv_path), str(db_path)]) == 1
    assert "failed" in capsys.readouterr().out
