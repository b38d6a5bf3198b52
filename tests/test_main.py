"""Tests for the command line entry point."""

import json

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from layout import build_forest  # noqa: E402
from main import build_parser, main  # noqa: E402
from parsing import load_people  # noqa: E402


@pytest.fixture
def people_file(tmp_path):
    path = tmp_path / "people.json"
    path.write_text(
        json.dumps(
            [
                {"id": "dad", "name": "Dad", "birthDate": "1940-03-01", "spouseId": "mom"},
                {"id": "mom", "name": "Mom", "birthDate": "1942-07-12", "spouseId": "dad"},
                {"id": "kid", "name": "Kid", "birthDate": "1970-01-01", "fatherId": "dad", "motherId": "mom"},
                {"id": "stranger", "name": "Stranger"},
            ]
        ),
        encoding="utf-8",
    )
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(["people.json"])
        assert args.radius == 3
        assert args.rank_engine == "builtin"
        assert args.no_normalize is False

    def test_rejects_unknown_engine(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["people.json", "--rank-engine", "circo"])


class TestMain:
    """Tests for running the whole pipeline."""

    def test_writes_layout_json(self, people_file, tmp_path):
        out = tmp_path / "layout.json"
        assert main([str(people_file), "-o", str(out)]) == 0

        data = json.loads(out.read_text(encoding="utf-8"))
        assert {n["id"] for n in data["nodes"]} == {"dad", "mom", "kid", "stranger"}
        assert {e["id"] for e in data["edges"]} == {"dad-spouse-mom", "dad->kid"}

    def test_stdout(self, people_file, capsys):
        assert main([str(people_file)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data["nodes"]) == 4

    def test_no_normalize_keeps_forest_coordinates(self, people_file, tmp_path):
        out = tmp_path / "layout.json"
        assert main([str(people_file), "-o", str(out), "--no-normalize"]) == 0

        data = json.loads(out.read_text(encoding="utf-8"))
        expected = build_forest(load_people(people_file)).to_dict()
        assert data == expected

    def test_focus(self, people_file, tmp_path):
        out = tmp_path / "layout.json"
        assert main([str(people_file), "-o", str(out), "--focus", "kid", "--radius", "1"]) == 0

        data = json.loads(out.read_text(encoding="utf-8"))
        assert {n["id"] for n in data["nodes"]} == {"dad", "mom", "kid"}

    def test_unknown_focus(self, people_file, tmp_path):
        assert main([str(people_file), "-o", str(tmp_path / "x.json"), "--focus", "nobody"]) == 1

    def test_missing_input(self, tmp_path):
        assert main([str(tmp_path / "missing.json")]) == 1

    def test_malformed_input(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        assert main([str(path)]) == 1

    def test_validate_logs_warnings(self, tmp_path, caplog):
        path = tmp_path / "people.json"
        path.write_text(json.dumps([{"id": "a", "name": "A", "fatherId": "ghost"}]), encoding="utf-8")

        assert main([str(path), "-o", str(tmp_path / "out.json"), "--validate"]) == 0
        assert "Dangling reference: A has unknown father ghost" in caplog.text

    def test_dot_and_plot_outputs(self, people_file, tmp_path):
        dot_path = tmp_path / "family.dot"
        png_path = tmp_path / "family.png"
        args = [str(people_file), "-o", str(tmp_path / "out.json"), "--dot", str(dot_path), "--plot", str(png_path)]

        assert main(args) == 0
        assert "digraph" in dot_path.read_text(encoding="utf-8")
        assert png_path.exists()
