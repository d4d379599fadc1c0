import asyncio
import json
from types import SimpleNamespace

import pytest

from guobiao_assist import builder
from guobiao_assist.config import Settings
from guobiao_assist.errors import ConfigurationError, OracleError, RecognitionError
from guobiao_assist.hand import HandState
from guobiao_assist.oracle import OpenAIOracle
from guobiao_assist.schemas import Section
from guobiao_assist.tiles import from_code


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if isinstance(self.content, Exception):
            raise self.content
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_oracle(content):
    completions = FakeCompletions(content)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIOracle(Settings(openai_api_key="test-key"), client=client), completions


def sample_hand() -> HandState:
    session = builder.new_session()
    for code in ["m1", "m2", "m3"]:
        session = builder.choose_tile(session, from_code(code))
    session = builder.select_target(session, Section.winning)
    session = builder.choose_tile(session, from_code("z7"))
    return session.hand


def test_missing_api_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        OpenAIOracle(Settings(openai_api_key=None))


def test_identify_tiles_normalizes_codes():
    oracle, completions = make_oracle(json.dumps({"reasoning": "", "tiles": [" S2", "p7", "z5"]}))
    codes = asyncio.run(oracle.identify_tiles(b"\xff\xd8jpeg"))
    assert codes == ["s2", "p7", "z5"]
    request = completions.requests[0]
    assert request["response_format"] == {"type": "json_object"}
    image_part = request["messages"][1]["content"][1]
    assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")


def test_identify_tiles_missing_key_gives_empty_list():
    oracle, _ = make_oracle(json.dumps({"reasoning": "nothing"}))
    assert asyncio.run(oracle.identify_tiles(b"img")) == []


def test_identify_melds():
    oracle, _ = make_oracle(json.dumps({"groups": [["p5", "p5", "p5", "p5"], ["m1", "m2", "m3"]]}))
    assert asyncio.run(oracle.identify_melds(b"img")) == [["p5", "p5", "p5", "p5"], ["m1", "m2", "m3"]]


@pytest.mark.parametrize("content", ["not json", "", json.dumps({"groups": "p5"}), json.dumps([1, 2])])
def test_unparseable_vision_output_is_recognition_error(content):
    oracle, _ = make_oracle(content)
    with pytest.raises(RecognitionError):
        asyncio.run(oracle.identify_melds(b"img"))


def test_score_parses_oracle_result():
    payload = {
        "totalFan": 12,
        "breakdown": [{"name": "All Types", "fan": 6, "description": "five suits"}],
        "reasoning": "summary",
    }
    oracle, completions = make_oracle(json.dumps(payload))
    result = asyncio.run(oracle.score(sample_hand(), "en"))
    assert result.total_fan == 12
    assert result.breakdown[0].name == "All Types"
    user_message = completions.requests[0]["messages"][1]["content"]
    assert '"winningTile": "z7"' in user_message
    assert "English" in completions.requests[0]["messages"][0]["content"]


def test_score_failure_is_oracle_error():
    oracle, _ = make_oracle(json.dumps({"breakdown": []}))
    with pytest.raises(OracleError) as excinfo:
        asyncio.run(oracle.score(sample_hand(), "zh"))
    assert excinfo.value.message == "计算失败，请重试"


def test_advice_normalizes_codes():
    payload = {"recommendedDiscard": "Z1", "targetFanPatterns": ["Pure Straight"], "advice": "x", "keepTiles": ["M1 "]}
    oracle, completions = make_oracle(json.dumps(payload))
    advice = asyncio.run(oracle.advise(sample_hand(), "en"))
    assert advice.recommended_discard == "z1"
    assert advice.keep_tiles == ["m1"]
    assert advice.target_fan_patterns == ["Pure Straight"]
    assert '"hand": ["m1", "m2", "m3"]' in completions.requests[0]["messages"][1]["content"]


def test_transport_failure_is_oracle_error():
    from openai import OpenAIError

    oracle, _ = make_oracle(OpenAIError("boom"))
    with pytest.raises(OracleError):
        asyncio.run(oracle.advise(sample_hand(), "en"))


def test_response_without_choices_is_oracle_error():
    oracle, _ = make_oracle(None)
    oracle._client.chat.completions.create = _no_choices
    with pytest.raises(OracleError):
        asyncio.run(oracle.score(sample_hand(), "en"))
    with pytest.raises(RecognitionError):
        asyncio.run(oracle.identify_tiles(b"img"))


async def _no_choices(**kwargs):
    return SimpleNamespace(choices=[])


def test_fractional_fan_is_accepted():
    payload = {"totalFan": 8.5, "breakdown": [{"name": "Half Point", "fan": 0.5}], "reasoning": ""}
    oracle, _ = make_oracle(json.dumps(payload))
    result = asyncio.run(oracle.score(sample_hand(), "en"))
    assert result.total_fan == 8.5
    assert result.breakdown[0].fan == 0.5
