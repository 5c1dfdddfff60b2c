from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest
from azure.core.exceptions import HttpResponseError

from receipt_eval.config import Config
from receipt_eval.layout import TextSegment
from receipt_eval.models.completion import OpenAICompletionModel
from receipt_eval.models.document_intelligence import DocumentIntelligenceModel


@pytest.fixture
def config(tmp_path):
    return Config(
        data_path=tmp_path / "data",
        evaluations_path=tmp_path / "evaluations",
        reports_path=tmp_path / "reports",
        azure_endpoint="https://example.cognitiveservices.azure.com/",
        azure_key="key",
        openai_api_key="sk-test",
        openai_model="test-model",
    )


@pytest.fixture
def image(tmp_path):
    path = tmp_path / "image.jpeg"
    path.write_bytes(b"jpeg")
    return path


def point(x, y):
    return MagicMock(x=x, y=y)


def word(content, confidence, left, top, right, bottom):
    return MagicMock(
        content=content,
        confidence=confidence,
        polygon=[point(left, top), point(right, top), point(right, bottom), point(left, bottom)],
    )


def analyze_result(words, width=8.0, height=10.0):
    page = MagicMock(page_number=1, width=width, height=height, unit="inch", words=words)
    return MagicMock(model_id="prebuilt-read", api_version="2023-07-31", content="", pages=[page])


def rate_limit_error():
    error = HttpResponseError(message="Too many requests")
    error.status_code = 429
    return error


class TestDocumentIntelligenceModel:

    def test_words_become_page_fraction_segments(self, config, image):
        client = MagicMock()
        client.begin_analyze_document.return_value.result.return_value = analyze_result([
            word("SUMME", 0.99, 0.8, 5.0, 2.4, 5.2),
            word("smudge", 0.4, 1.0, 1.0, 2.0, 2.0),
            word("edge", 0.6, 1.0, 1.0, 2.0, 2.0),
        ])
        model = DocumentIntelligenceModel(config, client=client)

        segments = model.process_document(image)

        assert len(segments) == 1
        segment = segments[0]
        assert isinstance(segment, TextSegment)
        assert segment.text == "SUMME"
        assert segment.x == pytest.approx(0.1)
        assert segment.y == pytest.approx(0.5)
        assert segment.width == pytest.approx(0.2)
        assert segment.height == pytest.approx(0.02)
        assert client.begin_analyze_document.call_args[0][0] == "prebuilt-read"

    def test_page_without_dimensions_is_skipped(self, config, image):
        client = MagicMock()
        client.begin_analyze_document.return_value.result.return_value = analyze_result(
            [word("SUMME", 0.99, 0.8, 5.0, 2.4, 5.2)], width=None
        )

        assert DocumentIntelligenceModel(config, client=client).process_document(image) == []

    def test_raw_response(self, config, image):
        client = MagicMock()
        client.begin_analyze_document.return_value.result.return_value = analyze_result([
            word("SUMME", 0.99, 0.8, 5.0, 2.4, 5.2),
        ])
        model = DocumentIntelligenceModel(config, client=client)

        assert model.get_last_raw_response_dict() == {}
        model.process_document(image)
        raw = model.get_last_raw_response_dict()

        assert raw["model_id"] == "prebuilt-read"
        assert raw["pages"][0]["words"][0]["content"] == "SUMME"
        assert raw["pages"][0]["words"][0]["polygon"][0] == {"x": 0.8, "y": 5.0}

    @patch("receipt_eval.models.document_intelligence.time.sleep")
    def test_rate_limit_is_retried(self, sleep, config, image):
        client = MagicMock()
        poller = MagicMock()
        poller.result.return_value = analyze_result([])
        client.begin_analyze_document.side_effect = [rate_limit_error(), poller]

        DocumentIntelligenceModel(config, client=client).process_document(image)

        assert client.begin_analyze_document.call_count == 2
        sleep.assert_called_once_with(1.0)

    @patch("receipt_eval.models.document_intelligence.time.sleep")
    def test_rate_limit_gives_up_after_retries(self, sleep, config, image):
        client = MagicMock()
        client.begin_analyze_document.side_effect = [rate_limit_error() for _ in range(3)]

        with pytest.raises(HttpResponseError):
            DocumentIntelligenceModel(config, client=client).process_document(image)

        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0, 4.0]

    def test_other_errors_are_raised_immediately(self, config, image):
        client = MagicMock()
        error = HttpResponseError(message="Bad request")
        error.status_code = 400
        client.begin_analyze_document.side_effect = error

        with pytest.raises(HttpResponseError):
            DocumentIntelligenceModel(config, client=client).process_document(image)

        assert client.begin_analyze_document.call_count == 1


def completion_response(content):
    message = MagicMock(content=content)
    return MagicMock(choices=[MagicMock(message=message)])


def openai_rate_limit_error():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(429, request=request)
    return openai.RateLimitError("Rate limit reached", response=response, body=None)


class TestOpenAICompletionModel:

    def test_complete(self, config):
        client = MagicMock()
        client.chat.completions.create.return_value = completion_response(' {"total": "1"} \n')
        model = OpenAICompletionModel(config, client=client)

        assert model.complete("prompt") == '{"total": "1"}'
        assert model.get_model_name() == "test-model"

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0.0
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_empty_message(self, config):
        client = MagicMock()
        client.chat.completions.create.return_value = completion_response(None)

        assert OpenAICompletionModel(config, client=client).complete("prompt") == ""

    @patch("receipt_eval.models.completion.time.sleep")
    def test_rate_limit_is_retried(self, sleep, config):
        client = MagicMock()
        client.chat.completions.create.side_effect = [
            openai_rate_limit_error(),
            completion_response("ok"),
        ]

        assert OpenAICompletionModel(config, client=client).complete("prompt") == "ok"
        sleep.assert_called_once_with(1.0)

    @patch("receipt_eval.models.completion.time.sleep")
    def test_rate_limit_gives_up_after_retries(self, sleep, config):
        client = MagicMock()
        client.chat.completions.create.side_effect = [openai_rate_limit_error() for _ in range(3)]

        with pytest.raises(openai.RateLimitError):
            OpenAICompletionModel(config, client=client).complete("prompt")

        assert client.chat.completions.create.call_count == 3
