"""End-to-end smoke tests for the CLI."""

import json

from supervisionplanner.cli import main

REQUEST = {
    "start_date": "2024-01-15",
    "end_date": "2024-01-28",
    "supervisor": {
        "daily_avail": {day: "9 am-12 pm, 1 pm-5 pm" for day in ["mon", "tue", "wed", "thu", "fri"]},
        "unavailable_days": ["01-19-24"],
    },
    "clients": [
        {"id": "C1", "monthly_hours": 4, "windows": {"mon": "9 am-12 pm", "thu": "9 am-12 pm"}},
        {"id": "C2", "monthly_hours": 3, "windows": {"tue": "1 pm-4 pm"}},
    ],
}


class TestCLI:
    """Tests for the command-line entry point."""

    def test_demo(self, capsys):
        assert main(["demo", "--clients", "3", "--weeks", "2"]) == 0
        out = capsys.readouterr().out
        assert "Validation: PASSED" in out

    def test_generate(self, tmp_path, capsys):
        request_path = tmp_path / "request.json"
        request_path.write_text(json.dumps(REQUEST))
        csv_path = tmp_path / "out.csv"

        assert main(["generate", str(request_path), "--csv", str(csv_path)]) == 0
        out = capsys.readouterr().out
        assert "\nSessions:\n" in out
        assert csv_path.read_text().startswith("Date,Client,Start,End")

    def test_generate_summary_only(self, tmp_path, capsys):
        request_path = tmp_path / "request.json"
        request_path.write_text(json.dumps(REQUEST))

        assert main(["generate", str(request_path), "--summary"]) == 0
        out = capsys.readouterr().out
        assert "\nSessions:\n" not in out
        assert "Progress:" in out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["generate", str(tmp_path / "missing.json")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_bad_number_in_request(self, tmp_path, capsys):
        document = json.loads(json.dumps(REQUEST))
        document["clients"][0]["min_session_mins"] = "sixty"
        request_path = tmp_path / "request.json"
        request_path.write_text(json.dumps(document))

        assert main(["generate", str(request_path)]) == 1
        assert "Error:" in capsys.readouterr().err
