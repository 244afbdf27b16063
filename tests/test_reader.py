import pandas as pd
import pytest

from phytodiv.errors import SchemaError
from phytodiv.reader import join_records, read_dwca, read_table


def _dwca_tables():
    event = pd.DataFrame({
        "id": ["E1", "E2"],
        "eventDate": ["2020-05-03", "2020-06-01"],
        "decimalLatitude": ["55", "60"],
        "decimalLongitude": ["10", "30"],
        "verbatimLocality": ["Anholt", "Gulf"],
        "minimumDepthInMeters": ["0", "0"],
        "maximumDepthInMeters": ["0", "0"],
    })
    occurrence = pd.DataFrame({
        "id": ["E1", "E1", "E2"],
        "occurrenceID": ["O1", "O2", "O3"],
        "scientificName": ["Alpha alpha", "Beta beta", "Alpha alpha"],
    })
    emof = pd.DataFrame({
        "id": ["E1", "E1", "E1", "E2"],
        "occurrenceID": ["O1", "O2", None, "O3"],
        "measurementType": ["Abundance", "Abundance", "Temperature", "Abundance"],
        "measurementValue": ["100", "50", "12.5", "7"],
        "measurementUnit": ["cells/L", "cells/L", "C", "cells/L"],
    })
    return event, occurrence, emof


def test_join_records():
    joined = join_records(*_dwca_tables())

    assert len(joined) == 3
    row = joined.loc[joined["occurrenceID"] == "O2"].iloc[0]
    assert row["eventID"] == "E1"
    assert row["scientificName"] == "Beta beta"
    assert row["verbatimLocality"] == "Anholt"
    assert row["measurementValue"] == "50"


def test_join_records_requires_keys():
    event, occurrence, emof = _dwca_tables()
    with pytest.raises(SchemaError, match="occurrenceID"):
        join_records(event, occurrence.drop(columns=["occurrenceID"]), emof)


def test_measurement_id_is_not_an_occurrence_key():
    # the extension id holds the core eventID in an event-core archive
    event, occurrence, emof = _dwca_tables()
    with pytest.raises(SchemaError, match="occurrenceID") as excinfo:
        join_records(event, occurrence, emof.drop(columns=["occurrenceID"]))
    assert excinfo.value.missing == ["occurrenceID"]
    assert "measurement table" in str(excinfo.value)


def test_read_dwca(tmp_path):
    event, occurrence, emof = _dwca_tables()
    event.to_csv(tmp_path / "event.txt", sep="\t", index=False)
    occurrence.to_csv(tmp_path / "occurrence.txt", sep="\t", index=False)
    emof.to_csv(tmp_path / "extendedmeasurementorfact.txt", sep="\t", index=False)

    joined = read_dwca(tmp_path)
    assert sorted(joined["occurrenceID"]) == ["O1", "O2", "O3"]


def test_read_dwca_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_dwca(tmp_path)


def test_read_table_by_suffix(tmp_path, monitoring_raw):
    monitoring_raw.to_csv(tmp_path / "raw.csv", index=False)
    monitoring_raw.to_csv(tmp_path / "raw.tsv", sep="\t", index=False)

    csv = read_table(tmp_path / "raw.csv")
    tsv = read_table(tmp_path / "raw.tsv")
    assert csv.shape == tsv.shape == monitoring_raw.shape
    assert csv["decimalLatitude"].iloc[0] == "55"
