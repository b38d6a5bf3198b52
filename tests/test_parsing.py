"""Tests for record loading and date handling."""

from datetime import date, datetime
import json

import pytest

from models import Person
from parsing import (
    birth_sort_key,
    load_people,
    normalize_records,
    parse_birth_date,
    parse_date_string,
    person_from_record,
    read_gedcom,
)

SAMPLE_GEDCOM = """0 HEAD
1 SOUR TEST
1 GEDC
2 VERS 5.5.1
2 FORM LINEAGE-LINKED
1 CHAR UTF-8
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 1 JAN 1900
1 DEAT
2 DATE 1970
1 FAMS @F1@
0 @I2@ INDI
1 NAME Mary /Jones/
1 SEX F
1 FAMS @F1@
0 @I3@ INDI
1 NAME Peter /Smith/
1 SEX M
1 BIRT
2 DATE 5 MAR 1925
1 FAMC @F1@
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 CHIL @I3@
0 TRLR
"""


class TestParseDateString:
    """Tests for birth date parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1975-01-01", "1975-01-01"),
            ("1975-01-01T10:30:00.000Z", "1975-01-01"),
            ("1990-06", "1990-06-01"),
            ("25 NOV 1954", "1954-11-25"),
            ("JAN 1905", "1905-01-01"),
            ("ABT 1905", "1905-01-01"),
            ("1698", "1698-01-01"),
            ("(01-27-1920)", "1920-01-27"),
            ("(02 May1838)", "1838-05-02"),
            ("(04 05 1911)", "1911-04-05"),
            ("(05/15/1923)", "1923-05-15"),
            ("(SEPT. 17,1910)", "1910-09-17"),
            ("(Oct.12,1929)", "1929-10-12"),
            ("(May, 1837)", "1837-05-01"),
            ("(1789?)", "1789-01-01"),
            ("(About:1746-00-00)", "1746-01-01"),
            ("(Abt.  1798)", "1798-01-01"),
            ("(11 Aug. 1968)", "1968-08-11"),
            ("(April 17, 1850)", "1850-04-17"),
        ],
    )
    def test_formats(self, raw, expected):
        assert parse_date_string(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "not a date", "2020-02-30", "13/45/2000", "Foo 1900"])
    def test_unparseable(self, raw):
        assert parse_date_string(raw) is None

    def test_date_objects(self):
        assert parse_birth_date(date(1950, 5, 4)) == date(1950, 5, 4)
        assert parse_birth_date(datetime(1950, 5, 4, 12, 0)) == date(1950, 5, 4)

    def test_sort_key_puts_undated_last(self):
        people = [
            Person(id="u", birth_date="garbage"),
            Person(id="late", birth_date="2000-01-01"),
            Person(id="early", birth_date="1800"),
        ]
        assert [p.id for p in sorted(people, key=birth_sort_key)] == ["early", "late", "u"]


class TestPersonFromRecord:
    """Tests for record coercion."""

    def test_camel_case_record(self):
        person = person_from_record(
            {
                "id": "b",
                "name": "Bob",
                "gender": "male",
                "birthDate": "1975-01-01",
                "alive": False,
                "fatherId": "a",
                "motherId": "  ",
                "spouseId": "",
                "imageUrl": "http://example.com/b.png",
                "extra": "ignored",
            }
        )
        assert person == Person(
            id="b",
            name="Bob",
            gender="male",
            birth_date="1975-01-01",
            alive=False,
            father_id="a",
            image_url="http://example.com/b.png",
        )

    def test_snake_case_record(self):
        person = person_from_record({"id": "c", "father_id": "a", "mother_id": "b", "spouse_id": "d"})
        assert (person.father_id, person.mother_id, person.spouse_id) == ("a", "b", "d")

    def test_defaults(self):
        person = person_from_record({"id": 7})
        assert person.id == "7"
        assert person.name == "Unknown"
        assert person.gender == "other"
        assert person.alive is True
        assert person.birth_date is None

    def test_is_alive_alias_and_gender_codes(self):
        assert person_from_record({"id": "a", "isAlive": False}).alive is False
        assert person_from_record({"id": "a", "gender": "F"}).gender == "female"
        assert person_from_record({"id": "a", "gender": "M"}).gender == "male"
        assert person_from_record({"id": "a", "gender": "unknown"}).gender == "other"

    def test_invalid_birth_date_dropped(self):
        assert person_from_record({"id": "a", "birthDate": "someday"}).birth_date is None

    def test_missing_id(self):
        assert person_from_record({"name": "Nobody"}) is None
        assert person_from_record({"id": "   "}) is None

    def test_not_a_mapping(self):
        with pytest.raises(TypeError):
            person_from_record(["a"])


class TestLoading:
    """Tests for loading people from files."""

    def test_normalize_records_skips_bad_and_repeated(self, caplog):
        people = normalize_records([{"id": "a"}, {"name": "no id"}, {"id": "a", "name": "again"}, Person(id="b")])
        assert [p.id for p in people] == ["a", "b"]
        assert "missing id" in caplog.text
        assert "duplicate id" in caplog.text

    def test_load_json_array(self, tmp_path):
        path = tmp_path / "people.json"
        path.write_text(json.dumps([{"id": "a"}, {"id": "b", "fatherId": "a"}]))
        people = load_people(path)
        assert [p.id for p in people] == ["a", "b"]
        assert people[1].father_id == "a"

    def test_load_json_object(self, tmp_path):
        path = tmp_path / "people.json"
        path.write_text(json.dumps({"people": [{"id": "a"}]}))
        assert [p.id for p in load_people(path)] == ["a"]

    def test_load_wrong_shape(self, tmp_path):
        path = tmp_path / "people.json"
        path.write_text(json.dumps({"persons": []}))
        with pytest.raises(ValueError):
            load_people(path)


class TestReadGedcom:
    """Tests for GEDCOM import."""

    @pytest.fixture
    def gedcom_people(self, tmp_path):
        path = tmp_path / "family.ged"
        path.write_text(SAMPLE_GEDCOM, encoding="utf-8")
        return {p.id: p for p in read_gedcom(path)}

    def test_individuals(self, gedcom_people):
        assert set(gedcom_people) == {"I1", "I2", "I3"}
        assert gedcom_people["I1"].name == "John Smith"
        assert gedcom_people["I1"].gender == "male"
        assert gedcom_people["I2"].gender == "female"

    def test_life_events(self, gedcom_people):
        assert parse_birth_date(gedcom_people["I1"].birth_date).year == 1900
        assert parse_birth_date(gedcom_people["I3"].birth_date).year == 1925
        assert gedcom_people["I2"].birth_date is None
        assert gedcom_people["I1"].alive is False
        assert gedcom_people["I3"].alive is True

    def test_family_links(self, gedcom_people):
        assert gedcom_people["I3"].father_id == "I1"
        assert gedcom_people["I3"].mother_id == "I2"
        assert gedcom_people["I1"].spouse_id == "I2"
        assert gedcom_people["I2"].spouse_id == "I1"
