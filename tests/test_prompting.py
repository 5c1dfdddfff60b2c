import pytest

from receipt_eval.layout import TextSegment
from receipt_eval.prompting import STRATEGIES, LayoutPromptStrategy, SimplePromptStrategy, get_strategy
from receipt_eval.prompting.layout import format_word


SEGMENTS = [
    TextSegment(x=0.70, y=0.300, width=0.1, height=0.02, text="12,40"),
    TextSegment(x=0.10, y=0.300, width=0.1, height=0.02, text="SUMME"),
    TextSegment(x=0.10, y=0.050, width=0.1, height=0.02, text="ACME"),
]


def test_get_strategy():
    assert isinstance(get_strategy("simple"), SimplePromptStrategy)
    assert isinstance(get_strategy("layout"), LayoutPromptStrategy)
    assert set(STRATEGIES) == {"simple", "layout"}

    with pytest.raises(ValueError, match="Unknown strategy"):
        get_strategy("nope")


class TestSimplePromptStrategy:

    def test_prompt_contains_reading_ordered_lines(self):
        prompt = SimplePromptStrategy().get_prompt(SEGMENTS)

        assert "ACME\nSUMME 12,40\n" in prompt
        assert prompt.endswith("JSON:")

    def test_prompt_lists_field_examples_before_context(self):
        prompt = SimplePromptStrategy().get_prompt(SEGMENTS)

        assert 'Examples of text labeled as "date":\n- 6.11.2021\n' in prompt
        assert "- PRISMA HERTTONIEMI" in prompt
        assert prompt.index("Examples of text") < prompt.index("Context:")

    def test_parse_json_completion(self):
        completion = ' {"total": "12,40", "date": "21.02.2023", "company": "ACME", "address": null}'

        assert SimplePromptStrategy().parse_completion(completion) == {
            "TOTAL": "12,40",
            "DATE": "21.02.2023",
            "COMPANY": "ACME",
            "ADDRESS": None,
        }

    def test_parse_json_embedded_in_text(self):
        completion = 'Sure! Here it is:\n```json\n{"total": 12.4, "company": "ACME"}\n```'

        parsed = SimplePromptStrategy().parse_completion(completion)

        assert parsed["TOTAL"] == "12.4"
        assert parsed["COMPANY"] == "ACME"
        assert parsed["DATE"] is None

    def test_unexpected_types_become_none(self):
        parsed = SimplePromptStrategy().parse_completion('{"total": true, "address": ["a", "b"]}')

        assert parsed["TOTAL"] is None
        assert parsed["ADDRESS"] is None

    @pytest.mark.parametrize("completion", ["", "no json here", "{not json}"])
    def test_unparseable_completion(self, completion):
        assert SimplePromptStrategy().parse_completion(completion) == {}


class TestLayoutPromptStrategy:

    def test_format_word(self):
        segment = TextSegment(x=0.1204, y=0.8456, width=0.1, height=0.02, text="Total")

        assert format_word(segment) == '{txt:"Total",box:[120,846]}'

    def test_prompt_lists_words_in_reading_order(self):
        prompt = LayoutPromptStrategy().get_prompt(SEGMENTS)

        assert '{txt:"ACME",box:[100,50]}{txt:"SUMME",box:[100,300]}{txt:"12,40",box:[700,300]}' in prompt
        assert '"OTHER"' in prompt
        assert prompt.endswith("A:")

    def test_parse_labels(self):
        completion = (
            '{txt:"ACME",label:"COMPANY"}{txt:"Markt",label:"COMPANY"}'
            '{txt:"SUMME",label:"OTHER"}{txt:"12,40",label:"TOTAL"}'
        )

        assert LayoutPromptStrategy().parse_completion(completion) == {
            "COMPANY": "ACME Markt",
            "TOTAL": "12,40",
        }

    def test_parse_skips_malformed_items(self):
        completion = '{txt:"ACME"}{garbage}{txt:"12,40",label:"TOTAL"}'

        assert LayoutPromptStrategy().parse_completion(completion) == {"TOTAL": "12,40"}

    def test_parse_empty_completion(self):
        assert LayoutPromptStrategy().parse_completion("") == {}
