"""Text piping tests — token substitution in question text."""

from survey_engine.piping import pipe_question, pipe_text, render_answer

from helpers.builders import make_question

N1 = make_question("q_years", external_id="N1", type="slider")
T1 = make_question("q_tools", external_id="T1", type="multi-choice",
                   options=["Electronic records", "Telemedicine", "Other"])


class TestPipeText:

    def test_substitutes_answer(self):
        text = pipe_text("You said {{N1}} years.", [N1], {"q_years": 5})
        assert text == "You said 5 years."

    def test_unanswered_token_left_verbatim(self):
        text = pipe_text("You said {{N1}} years.", [N1], {})
        assert text == "You said {{N1}} years.", "Missing answer must leave the token"

    def test_unknown_token_left_verbatim(self):
        text = pipe_text("Hello {{X9}}", [N1], {"q_years": 5})
        assert text == "Hello {{X9}}"

    def test_list_answer_joined(self):
        text = pipe_text("You use {{T1}}.", [T1], {"q_tools": ["Electronic records", "Telemedicine"]})
        assert text == "You use Electronic records, Telemedicine."

    def test_every_occurrence_replaced(self):
        text = pipe_text("{{N1}} and {{N1}}", [N1], {"q_years": 3})
        assert text == "3 and 3"

    def test_substituted_text_not_rescanned(self):
        """An answer that looks like a token is inserted literally."""
        text = pipe_text("Said: {{N1}}", [N1], {"q_years": "{{N1}}"})
        assert text == "Said: {{N1}}"

    def test_none_and_empty_text(self):
        assert pipe_text(None, [N1], {}) is None
        assert pipe_text("", [N1], {}) == ""


class TestRenderAnswer:

    def test_dict_renders_as_json(self):
        rendered = render_answer({"selected": "Other", "other_text": "Locum"})
        assert rendered == '{"selected": "Other", "other_text": "Locum"}'

    def test_scalars(self):
        assert render_answer(7) == "7"
        assert render_answer(True) == "True"
        assert render_answer("Clinic") == "Clinic"


class TestPipeQuestion:

    def test_applies_to_text_and_sub_text(self):
        q = make_question("q2", text="Years: {{N1}}", sub_text="({{N1}} total)")
        piped = pipe_question(q, [N1, q], {"q_years": 12})
        assert piped.text == "Years: 12"
        assert piped.sub_text == "(12 total)"

    def test_catalog_question_unchanged(self):
        q = make_question("q2", text="Years: {{N1}}")
        pipe_question(q, [N1, q], {"q_years": 12})
        assert q.text == "Years: {{N1}}", "Piping must not mutate the catalog question"

    def test_no_tokens_returns_same_object(self):
        q = make_question("q2", text="Plain text")
        assert pipe_question(q, [q], {}) is q
