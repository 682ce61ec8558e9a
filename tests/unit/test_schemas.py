"""
Unit tests for API schemas and model identifier parsing.
"""
import pytest
from pydantic import ValidationError

from synexa.schemas import (
    CreatePredictionRequest,
    Prediction,
    WaitOptions,
    parse_model_identifier,
)


class TestPrediction:

    def test_parses_server_payload(self, prediction_payload):
        prediction = Prediction.model_validate(prediction_payload(
            "succeeded",
            output=["a", "b"],
            metrics={"predict_time": 1.5},
        ))

        assert prediction.output == ["a", "b"]
        assert prediction.metrics["predict_time"] == 1.5
        assert prediction.created_at.year == 2026

    @pytest.mark.parametrize("status,terminal", [
        ("starting", False),
        ("processing", False),
        ("succeeded", True),
        ("failed", True),
        ("canceled", False),
        ("something-new", False),
    ])
    def test_is_terminal(self, make_prediction, status, terminal):
        assert make_prediction(status).is_terminal is terminal

    def test_snapshot_is_frozen(self, make_prediction):
        prediction = make_prediction("starting")
        with pytest.raises(ValidationError):
            prediction.status = "succeeded"

    def test_minimal_payload(self):
        prediction = Prediction.model_validate(
            {"id": "p1", "model": "o/m", "status": "starting"}
        )
        assert prediction.output is None
        assert prediction.input == {}


class TestCreatePredictionRequest:

    def test_rejects_unknown_webhook_event(self):
        with pytest.raises(ValidationError):
            CreatePredictionRequest(
                model="o/m",
                input={},
                webhook_events_filter=["finished"],
            )

    def test_rejects_extra_fields(self):
        with pytest.raises(ValidationError):
            CreatePredictionRequest(model="o/m", input={}, stream=True)


class TestWaitOptions:

    def test_defaults(self):
        options = WaitOptions()
        assert options.mode == "block"
        assert options.interval == 500
        assert options.timeout == 60
        assert options.interval_seconds == 0.5

    def test_rejects_unknown_mode(self):
        with pytest.raises(ValidationError):
            WaitOptions(mode="stream")

    @pytest.mark.parametrize("interval", [-1, 0])
    def test_rejects_non_positive_interval(self, interval):
        with pytest.raises(ValidationError):
            WaitOptions(interval=interval)


class TestParseModelIdentifier:

    def test_owner_and_name(self):
        parsed = parse_model_identifier("black-forest-labs/flux-schnell")
        assert parsed.owner == "black-forest-labs"
        assert parsed.name == "flux-schnell"
        assert parsed.version is None
        assert parsed.model == "black-forest-labs/flux-schnell"

    def test_version_suffix(self):
        parsed = parse_model_identifier("owner/model:v2")
        assert parsed.model == "owner/model"
        assert parsed.version == "v2"

    @pytest.mark.parametrize(
        "identifier, owner, name, version",
        [
            ("a/b/c:v", "a", "b/c", "v"),
            ("a/b/c", "a", "b/c", None),
        ],
    )
    def test_extra_slashes_stay_in_name(self, identifier, owner, name, version):
        parsed = parse_model_identifier(identifier)
        assert (parsed.owner, parsed.name, parsed.version) == (owner, name, version)
        assert parsed.model == f"{owner}/{name}"

    @pytest.mark.parametrize("identifier", ["model", "/model", "owner/", "owner/:v1", ""])
    def test_invalid(self, identifier):
        with pytest.raises(ValueError):
            parse_model_identifier(identifier)
