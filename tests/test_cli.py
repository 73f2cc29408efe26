import json

import httpx
from typer.testing import CliRunner

from moodwallet.interventions.cli import savings as savings_cli
from moodwallet.interventions.cli.main import build_cli

runner = CliRunner()


class TestRulesCommands:
    def test_list_marks_eligible_rules(self):
        result = runner.invoke(build_cli(), ["rules", "list", "--tier", "pro"])
        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert len(lines) == 5
        assert lines[0].startswith("*") and "mood_spending_correlation" in lines[0]
        assert lines[1].startswith(" ") and "location_based_intervention" in lines[1]

    def test_try_sample(self):
        result = runner.invoke(build_cli(), ["rules", "try", "--sample", "--tier", "premium"])
        assert result.exit_code == 0
        assert "5 interventions fired (overall risk 3)" in result.output

    def test_try_sample_json_for_free_tier(self):
        result = runner.invoke(
            build_cli(), ["rules", "try", "--sample", "--tier", "free", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["results"] == []
        assert len(data["skipped_by_tier"]) == 5

    def test_try_snapshot_file(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text(
            json.dumps(
                {
                    "current_mood": 2,
                    "location": {"latitude": 1, "longitude": 1},
                    "weather": {"condition": "rain"},
                }
            )
        )
        result = runner.invoke(build_cli(), ["rules", "try", "-s", str(path)])
        assert result.exit_code == 0
        assert "weather_mood_intervention" in result.output

    def test_try_invalid_snapshot(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"current_mood": 99}))
        result = runner.invoke(build_cli(), ["rules", "try", "-s", str(path)])
        assert result.exit_code == 1

    def test_try_requires_one_source(self):
        result = runner.invoke(build_cli(), ["rules", "try"])
        assert result.exit_code == 2


class TestSavingsCommands:
    def test_stats_sends_gateway_headers(self, monkeypatch):
        seen = {}

        def fake_get(url, params, headers, timeout):
            seen.update(url=url, params=params, headers=headers)
            return httpx.Response(
                200,
                json={
                    "total_saved": "12.50",
                    "savings_this_month": "12.50",
                    "savings_this_week": "0.00",
                    "confirmed_saved": "0.00",
                    "estimated_saved": "12.50",
                    "intervention_count": 1,
                    "top_categories": [
                        {"category": "food", "amount": "12.50", "count": 1}
                    ],
                },
            )

        monkeypatch.setattr(savings_cli.httpx, "get", fake_get)
        result = runner.invoke(
            build_cli(),
            ["savings", "stats", "-u", "u1", "--days", "7", "--api-url", "http://api/"],
        )
        assert result.exit_code == 0
        assert seen["url"] == "http://api/savings/stats"
        assert seen["params"] == {"days": 7}
        assert seen["headers"]["X-User-Id"] == "u1"
        assert "Total saved (last 7 days): 12.50" in result.output

    def test_history_error_exits_1(self, monkeypatch):
        monkeypatch.setattr(
            savings_cli.httpx,
            "get",
            lambda url, params, headers, timeout: httpx.Response(401, text="nope"),
        )
        result = runner.invoke(build_cli(), ["savings", "history", "-u", "u1"])
        assert result.exit_code == 1
